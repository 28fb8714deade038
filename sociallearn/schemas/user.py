from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from sociallearn.models import Permission, Role

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must contain at least 8 characters")
    if not re.search(r"[a-z]", value) or not re.search(r"[A-Z]", value) or not re.search(r"\d", value):
        raise ValueError("Password must contain a lowercase letter, an uppercase letter and a digit")
    return value


class UserCreate(SQLModel):
    email: str
    password: str
    name: str = Field(min_length=2)
    role: Role = Role.editor

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not _EMAIL_PATTERN.match(normalized):
            raise ValueError("Invalid email address")
        return normalized

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 2:
            raise ValueError("Name must contain at least 2 characters")
        return stripped

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_password_strength(value)


class UserUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=2)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class UserPasswordUpdate(SQLModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _validate_password_strength(value)


class UserRead(SQLModel):
    id: int
    email: str
    name: str
    role: Role
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    permissions: list[Permission] = Field(default_factory=list)
