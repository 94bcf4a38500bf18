from pydantic import BaseModel, Field


class ApiErrorBody(BaseModel):
    message: str
    code: str
    details: object | None = None


class ApiErrorResponse(BaseModel):
    ok: bool = False
    error: ApiErrorBody
    correlation_id: str = Field(serialization_alias="correlationId")
