from datetime import date as date_type, datetime
from typing import List, Optional

from app.schemas.common import CamelModel
from app.schemas.sale import CashierBrief


class ClockRequest(CamelModel):
    notes: Optional[str] = None
    break_minutes: Optional[int] = None


class AttendanceResponse(CamelModel):
    id: int
    employee_id: int
    date: date_type
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    total_hours: float
    notes: Optional[str] = None
    employee: Optional[CashierBrief] = None


class AttendanceListResponse(CamelModel):
    attendance: List[AttendanceResponse]
