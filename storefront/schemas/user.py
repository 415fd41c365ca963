# storefront/schemas/user.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


def is_password_strong(password: str) -> bool:
    # mínimo 6 caracteres, com letras e números
    return (
        isinstance(password, str)
        and len(password) >= 6
        and any(c.isalpha() for c in password)
        and any(c.isdigit() for c in password)
    )


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str = Field(min_length=1, max_length=120)
    phone_number: Optional[str] = Field(default=None, max_length=30)

    @field_validator("password")
    @classmethod
    def _strong(cls, v: str) -> str:
        if not is_password_strong(v):
            raise ValueError("Password must be at least 6 characters and contain letters and numbers")
        return v


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    phone_number: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def _strong(cls, v: str) -> str:
        if not is_password_strong(v):
            raise ValueError("Password must be at least 6 characters and contain letters and numbers")
        return v
