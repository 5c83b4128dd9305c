"""
Auth API schemas (request models).
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-+()]+$")


def _normalize_email(value: object) -> str:
    if not isinstance(value, str):
        raise ValueError("Invalid email format.")
    email = value.strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError("Invalid email format.")
    return email


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=100)
    name: str = Field(..., min_length=2, max_length=100)
    phone: str | None = Field(default=None, min_length=10, max_length=15)

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Phone number must be a string.")
        phone = value.strip()
        if not phone:
            return None
        if not PHONE_RE.match(phone):
            raise ValueError("Phone number contains invalid characters.")
        return phone


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=100)

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value: str) -> str:
        return _normalize_email(value)
