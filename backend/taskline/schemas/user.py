from __future__ import annotations

import uuid

from pydantic import BaseModel, EmailStr, Field

from taskline.models.enums import UserRole


class UserOut(BaseModel):
    id: uuid.UUID
    name: str
    email: EmailStr
    role: UserRole
    avatar: str | None = None
    is_active: bool = True


class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.employee
