from datetime import date, datetime
from typing import List, Optional
from pydantic import Field, field_validator

from app.schemas.common import CamelModel, Pagination


class MedicineCreate(CamelModel):
    name: str = Field(min_length=1)
    generic_name: Optional[str] = None
    manufacturer: str = Field(min_length=1)
    category: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(gt=0)
    quantity: int = Field(ge=0)
    min_stock_level: int = Field(ge=0)
    expiry_date: date
    batch_number: str = Field(min_length=1)
    location: Optional[str] = None


class MedicineUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    generic_name: Optional[str] = None
    manufacturer: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = None

    @field_validator(
        "name", "manufacturer", "category", "price", "quantity",
        "min_stock_level", "expiry_date", "batch_number",
        mode="before",
    )
    @classmethod
    def required_fields_not_null(cls, v):
        if v is None:
            raise ValueError("May be omitted but not set to null")
        return v


class MedicineResponse(CamelModel):
    id: int
    name: str
    generic_name: Optional[str] = None
    manufacturer: str
    category: str
    description: Optional[str] = None
    price: float
    quantity: int
    min_stock_level: int
    expiry_date: date
    batch_number: str
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MedicineBrief(CamelModel):
    id: int
    name: str
    generic_name: Optional[str] = None
    price: float


class MedicineStats(CamelModel):
    total_medicines: int
    total_quantity: int
    low_stock_items: int
    expiring_soon: int


class MedicineListResponse(CamelModel):
    medicines: List[MedicineResponse]
    pagination: Pagination
    stats: MedicineStats
