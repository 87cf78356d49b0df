from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.sarisuki.core.config import settings

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"


class UserProfile(BaseModel):
    uid: str
    email: str | None = None
    display_name: str | None = None
    role: str
    store_id: str
    store_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.email or "Unknown Staff"


class Store(BaseModel):
    id: str
    name: str
    admin_uid: str
    created_at: datetime | None = None


class _PasswordConfirmation(BaseModel):
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class AdminRegisterRequest(_PasswordConfirmation):
    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "owner@example.com",
                "password": "secret1",
                "confirm_password": "secret1",
                "store_name": "Aling Nena Store",
            }
        }
    }

    email: EmailStr
    store_name: str = Field(min_length=settings.STORE_NAME_MIN_LENGTH)


class StaffRegisterRequest(_PasswordConfirmation):
    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "cashier@example.com",
                "password": "secret1",
                "confirm_password": "secret1",
                "store_id": "1a2b3c4d",
                "display_name": "Juan Dela Cruz",
            }
        }
    }

    email: EmailStr
    store_id: str = Field(min_length=1)
    display_name: str = Field(min_length=settings.DISPLAY_NAME_MIN_LENGTH)


class LoginRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "cashier@example.com",
                "password": "secret1",
                "store_id": "1a2b3c4d",
            }
        }
    }

    email: EmailStr
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH)
    store_id: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(min_length=settings.DISPLAY_NAME_MIN_LENGTH)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    redirect_to: str
    profile: UserProfile
    trace_id: str


class RegistrationResponse(BaseModel):
    uid: str
    store_id: str
    store_name: str | None = None
    role: str
    message: str
    redirect_to: str = "/login"
    trace_id: str


class LogoutResponse(BaseModel):
    ok: bool
    redirect_to: str
    trace_id: str


class ProfileResponse(BaseModel):
    profile: UserProfile
    is_admin: bool
    is_staff: bool
    trace_id: str
