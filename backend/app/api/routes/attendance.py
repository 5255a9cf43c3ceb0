"""Staff attendance: clock in/out once per working day."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.attendance import Attendance
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.attendance import AttendanceListResponse, AttendanceResponse, ClockRequest

router = APIRouter()


def _today_record(db: Session, employee_id: int, today: date) -> Optional[Attendance]:
    return db.query(Attendance).filter(
        Attendance.employee_id == employee_id,
        Attendance.date == today,
    ).first()


def worked_hours(clock_in: datetime, clock_out: datetime, break_minutes: int = 0) -> Decimal:
    """Hours between clock-in and clock-out less the break, never negative, 2dp."""
    minutes = (clock_out - clock_in).total_seconds() / 60 - (break_minutes or 0)
    return Decimal(str(round(max(minutes, 0) / 60, 2)))


@router.get("", response_model=AttendanceListResponse)
def list_attendance(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Admins see everyone; other staff only their own records."""
    q = db.query(Attendance)
    if current_user.role != UserRole.ADMIN.value:
        employee_id = current_user.id
    if employee_id:
        q = q.filter(Attendance.employee_id == employee_id)
    if start_date:
        q = q.filter(Attendance.date >= start_date)
    if end_date:
        q = q.filter(Attendance.date <= end_date)

    records = q.order_by(Attendance.date.desc(), Attendance.id.desc()).all()
    return AttendanceListResponse(attendance=records)


@router.post("/clock-in", response_model=AttendanceResponse)
def clock_in(
    data: Optional[ClockRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = data or ClockRequest()
    now = datetime.utcnow()
    if _today_record(db, current_user.id, now.date()):
        raise BusinessError.bad_request("Already clocked in today")

    record = Attendance(
        employee_id=current_user.id,
        date=now.date(),
        clock_in=now,
        total_hours=0,
        notes=data.notes,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    AuditLog.log_action("clock_in", "attendance", record.id, current_user.id)
    return record


@router.post("/clock-out", response_model=AttendanceResponse)
def clock_out(
    data: Optional[ClockRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = data or ClockRequest()
    now = datetime.utcnow()
    record = _today_record(db, current_user.id, now.date())
    if not record or not record.clock_in:
        raise BusinessError.bad_request("Not clocked in today")
    if record.clock_out:
        raise BusinessError.bad_request("Already clocked out today")

    record.clock_out = now
    record.total_hours = worked_hours(record.clock_in, now, data.break_minutes or 0)
    if data.notes:
        record.notes = data.notes
    db.commit()
    db.refresh(record)

    AuditLog.log_action("clock_out", "attendance", record.id, current_user.id,
                        changes={"total_hours": str(record.total_hours)})
    return record
