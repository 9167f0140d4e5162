"""Pydantic schemas for auth and user administration endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from inspection_engine.auth.policy import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    is_active: bool
    roles: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., min_length=6, max_length=72)


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    full_name: str = Field(..., min_length=1, max_length=200)
    role: Role = Role.TECHNICIAN


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=72)


class UsersStatusRequest(BaseModel):
    user_ids: list[str] = Field(..., max_length=500)


class UserStatusItem(BaseModel):
    id: str
    is_active: Optional[bool] = None
