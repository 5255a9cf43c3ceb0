from datetime import date, datetime
from typing import List, Optional
from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel, Pagination


class CustomerCreate(CamelModel):
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    allergies: Optional[List[str]] = None


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    allergies: Optional[List[str]] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("Name may be omitted but not set to null")
        return v


class CustomerResponse(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    allergies: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CustomerBrief(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class CustomerListItem(CustomerResponse):
    prescription_count: int = 0
    sale_count: int = 0


class CustomerListResponse(CamelModel):
    customers: List[CustomerListItem]
    pagination: Pagination
