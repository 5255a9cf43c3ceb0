from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel


class ReceiptLineResponse(CamelModel):
    name: str
    generic_name: Optional[str] = None
    quantity: int
    unit_price: float
    discount: float
    subtotal: float


class ReceiptTotalsResponse(CamelModel):
    subtotal: float
    tax: float
    discount: float
    total: float


class ReceiptResponse(CamelModel):
    sale_id: int
    number: str
    sale_date: datetime
    cashier: str
    payment_method: str
    lines: List[ReceiptLineResponse]
    totals: ReceiptTotalsResponse
    customer: Optional[str] = None
    prescription_number: Optional[str] = None
    notes: Optional[str] = None
    header: List[str] = []
    footer: List[str] = []
    text: str
