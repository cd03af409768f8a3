"""Schemas for authentication endpoints."""

import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from billpay.services.auth.auth_service import MAX_PASSWORD_BYTES

# E.164: "+" + country code + subscriber number, at most 15 digits
E164_REGEX = re.compile(r"^\+[1-9]\d{1,14}$")
_EMAIL_LIKE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _validate_password_strength(v: str) -> str:
    """Shared password validation logic."""
    errors = []
    if not re.search(r"[a-z]", v):
        errors.append("lowercase letter")
    if not re.search(r"[A-Z]", v):
        errors.append("uppercase letter")
    if not re.search(r"\d", v):
        errors.append("number")

    if errors:
        raise ValueError(f"Password must contain at least one: {', '.join(errors)}")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


def sanitize_phone(value: str) -> str:
    """Strip formatting characters, keeping a single leading '+'."""
    trimmed = value.strip()
    digits = re.sub(r"[^\d]", "", trimmed)
    return f"+{digits}" if trimmed.startswith("+") else digits


class SignupRequest(BaseModel):
    """Schema for user signup."""

    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8, max_length=100)
    phone: str | None = None
    referral_code: str | None = Field(None, max_length=50)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _validate_password_strength(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if _EMAIL_LIKE.match(v.strip()):
            raise ValueError("Phone number cannot be an email address")
        phone = sanitize_phone(v)
        if not phone:
            return None
        if not E164_REGEX.match(phone):
            raise ValueError("Phone must be in E.164 format, e.g. +2348012345678")
        return phone


class LoginRequest(BaseModel):
    """Schema for user login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class UserInfo(BaseModel):
    """Schema for user info in auth responses."""

    id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Schema for signup and login responses."""

    access_token: str
    token_type: str = "bearer"
    user: UserInfo


class MessageResponse(BaseModel):
    """Schema for simple message response."""

    message: str


class ForgotPasswordRequest(BaseModel):
    """Schema for requesting password reset."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Schema for resetting password with token."""

    token: str = Field(min_length=1, max_length=256)
    new_password: str = Field(min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _validate_password_strength(v)
