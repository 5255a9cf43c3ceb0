from datetime import date, datetime
from typing import Optional
from pydantic import EmailStr, Field, field_validator

from app.models.enums import UserRole
from app.schemas.common import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: Optional[UserRole] = None
    phone: Optional[str] = None


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserUpdate(CamelModel):
    name: Optional[str] = None
    role: Optional[UserRole] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    hire_date: Optional[date] = None
    salary: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name", "role", "is_active", mode="before")
    @classmethod
    def required_fields_not_null(cls, v):
        if v is None:
            raise ValueError("May be omitted but not set to null")
        return v


class UserResponse(CamelModel):
    id: int
    email: str
    name: str
    role: UserRole
    is_active: bool
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class EmployeeResponse(UserResponse):
    address: Optional[str] = None
    hire_date: Optional[date] = None
    salary: Optional[float] = None


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class VerifyResponse(CamelModel):
    user: UserResponse
