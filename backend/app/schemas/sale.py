from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.models.enums import PaymentMethod
from app.schemas.common import CamelModel, Pagination
from app.schemas.customer import CustomerBrief
from app.schemas.medicine import MedicineBrief


class SaleItemCreate(CamelModel):
    medicine_id: int
    quantity: int = Field(gt=0)
    unit_price: float = Field(gt=0)
    discount: float = Field(default=0, ge=0)


class SaleCreate(CamelModel):
    customer_id: Optional[int] = None
    items: List[SaleItemCreate] = Field(min_length=1)
    payment_method: PaymentMethod
    discount: float = Field(default=0, ge=0)
    notes: Optional[str] = None


class SaleItemResponse(CamelModel):
    id: int
    medicine_id: int
    quantity: int
    unit_price: float
    discount: float
    subtotal: float
    medicine: Optional[MedicineBrief] = None


class CashierBrief(CamelModel):
    id: int
    name: str


class PrescriptionRef(CamelModel):
    id: int
    prescription_number: str


class SaleResponse(CamelModel):
    id: int
    customer_id: Optional[int] = None
    prescription_id: Optional[int] = None
    cashier_id: int
    subtotal: float
    tax: float
    discount: float
    total: float
    payment_method: PaymentMethod
    sale_date: datetime
    notes: Optional[str] = None
    customer: Optional[CustomerBrief] = None
    prescription: Optional[PrescriptionRef] = None
    cashier: Optional[CashierBrief] = None
    items: List[SaleItemResponse] = []


class SaleListResponse(CamelModel):
    sales: List[SaleResponse]
    pagination: Pagination


class PaymentMethodSummary(CamelModel):
    payment_method: PaymentMethod
    total: float
    count: int


class TopMedicine(CamelModel):
    medicine_id: int
    quantity: int
    subtotal: float
    medicine: Optional[MedicineBrief] = None


class SalesSummary(CamelModel):
    total_sales: float
    total_transactions: int
    average_sale: float
    total_tax: float
    total_discount: float
    sales_by_payment_method: List[PaymentMethodSummary]
    top_medicines: List[TopMedicine]
