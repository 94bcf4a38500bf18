import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.hub.db.models import StoreStatus, UserRole, UserStatus


def _trim(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class _TrimmedModel(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _trim_strings(cls, value):
        return _trim(value)


# Stores


class StoreCreateRequest(_TrimmedModel):
    ace_store_number: str = Field(..., max_length=32)
    pos_store_number: str = Field(..., max_length=32)
    store_name: str = Field(..., max_length=255)
    email: str | None = Field(default=None, max_length=255)
    address_line1: str | None = Field(default=None, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=64)
    postal_code: str | None = Field(default=None, max_length=32)
    country: str | None = Field(default=None, max_length=64)
    date_opened: date | None = None
    timezone: str | None = Field(default=None, max_length=64)
    sort_order: int = 0
    status: StoreStatus = StoreStatus.ACTIVE

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "ace_store_number": "12345",
                    "pos_store_number": "7",
                    "store_name": "Main Street",
                    "city": "Reno",
                    "state": "NV",
                    "timezone": "America/Los_Angeles",
                }
            ]
        }
    }

    @field_validator("sort_order", mode="before")
    @classmethod
    def _default_sort_order(cls, value):
        return 0 if value is None else value


class StoreUpdateRequest(_TrimmedModel):
    ace_store_number: str | None = Field(default=None, max_length=32)
    pos_store_number: str | None = Field(default=None, max_length=32)
    store_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    address_line1: str | None = Field(default=None, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=64)
    postal_code: str | None = Field(default=None, max_length=32)
    country: str | None = Field(default=None, max_length=64)
    date_opened: date | None = None
    timezone: str | None = Field(default=None, max_length=64)
    sort_order: int | None = None


class StoreItem(BaseModel):
    id: str
    ace_store_number: str
    pos_store_number: str
    store_name: str
    email: str | None
    address_line1: str | None
    address_line2: str | None
    city: str | None
    state: str | None
    postal_code: str | None
    country: str | None
    date_opened: date | None
    timezone: str | None
    sort_order: int
    status: StoreStatus
    created_at: datetime
    updated_at: datetime


StoreStatusFilter = Literal["active", "inactive", "all"]


# Profiles


class ProfileCreateRequest(_TrimmedModel):
    id: uuid.UUID | None = None
    full_name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    role: UserRole = UserRole.EMPLOYEE
    status: Literal["active", "inactive"] = "active"
    home_store_id: uuid.UUID | None = None
    must_reset_password: bool = True


class ProfileUpdateRequest(_TrimmedModel):
    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: UserRole | None = None
    home_store_id: uuid.UUID | None = None
    must_reset_password: bool | None = None


class ProfileItem(BaseModel):
    id: str
    full_name: str
    email: str
    role: UserRole
    status: UserStatus
    home_store_id: str | None
    must_reset_password: bool
    created_at: datetime
    updated_at: datetime


class ProfileDetail(ProfileItem):
    store_ids: list[str]


ProfileStatusFilter = Literal["active", "inactive", "deleted", "all"]


# Access grants


class AccessSyncRequest(BaseModel):
    store_ids: list[uuid.UUID]


class AccessSyncResult(BaseModel):
    user_id: str
    added: list[str]
    removed: list[str]
    store_ids: list[str]


# Local authentication


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
