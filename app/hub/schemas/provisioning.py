import uuid
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.hub.db.models import UserRole, UserStatus


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _clean_email(value: str) -> str:
    value = value.strip()
    local, _, domain = value.partition("@")
    if not local or not domain or " " in value:
        raise ValueError("must be a valid email address")
    return value


class CreateUserRequest(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}

    mode: Literal["create"] = "create"
    email: str
    full_name: str
    role: UserRole = UserRole.EMPLOYEE
    status: UserStatus = UserStatus.ACTIVE
    home_store_id: uuid.UUID | None = None
    must_reset_password: bool | None = None
    invite: bool = False
    temp_password: str | None = Field(default=None, alias="tempPassword")
    redirect_to: str | None = Field(default=None, alias="redirectTo")

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _clean_email(value)

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value):
        return _blank_to_none(value) or UserRole.EMPLOYEE

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        return _blank_to_none(value) or UserStatus.ACTIVE

    @field_validator("status")
    @classmethod
    def _no_deleted_status(cls, value: UserStatus) -> UserStatus:
        if value == UserStatus.DELETED:
            raise ValueError("new users cannot be created as deleted")
        return value

    @field_validator("home_store_id", "temp_password", "redirect_to", mode="before")
    @classmethod
    def _optional_blank(cls, value):
        return _blank_to_none(value)


class ResetPasswordRequest(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}

    mode: Literal["reset"]
    email: str
    redirect_to: str | None = Field(default=None, alias="redirectTo")

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _clean_email(value)

    @field_validator("redirect_to", mode="before")
    @classmethod
    def _optional_blank(cls, value):
        return _blank_to_none(value)


ProvisioningRequest = CreateUserRequest | ResetPasswordRequest


class CreateUserResult(BaseModel):
    id: str
    invite_sent: bool = Field(serialization_alias="inviteSent")
    temp_password: str | None = Field(default=None, serialization_alias="tempPassword")
    reset_link: str | None = Field(default=None, serialization_alias="resetLink")
    existing_account: bool | None = Field(default=None, serialization_alias="existingAccount")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ResetPasswordResult(BaseModel):
    invite_sent: bool = Field(default=False, serialization_alias="inviteSent")
    # The platform never hands back the recovery link for this operation.
    reset_link: None = Field(default=None, serialization_alias="resetLink")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
