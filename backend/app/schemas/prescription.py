from datetime import date, datetime
from typing import List, Optional
from pydantic import Field

from app.models.enums import PaymentMethod, PrescriptionStatus
from app.schemas.common import CamelModel, Pagination
from app.schemas.customer import CustomerBrief
from app.schemas.medicine import MedicineBrief


class PrescriptionItemCreate(CamelModel):
    medicine_id: int
    quantity: int = Field(gt=0)
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None


class PrescriptionCreate(CamelModel):
    customer_id: int
    doctor_name: str = Field(min_length=1)
    prescription_number: str = Field(min_length=1)
    issue_date: date
    notes: Optional[str] = None
    items: List[PrescriptionItemCreate] = Field(min_length=1)


class PrescriptionUpdate(CamelModel):
    status: Optional[PrescriptionStatus] = None
    notes: Optional[str] = None


class PrescriptionFill(CamelModel):
    payment_method: PaymentMethod = PaymentMethod.CASH
    discount: float = Field(default=0, ge=0)


class PrescriptionItemResponse(CamelModel):
    id: int
    medicine_id: int
    quantity: int
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None
    medicine: Optional[MedicineBrief] = None


class PrescriptionResponse(CamelModel):
    id: int
    customer_id: int
    doctor_name: str
    prescription_number: str
    issue_date: date
    status: PrescriptionStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer: Optional[CustomerBrief] = None
    items: List[PrescriptionItemResponse] = []


class PrescriptionListResponse(CamelModel):
    prescriptions: List[PrescriptionResponse]
    pagination: Pagination
