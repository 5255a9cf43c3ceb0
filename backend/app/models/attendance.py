from sqlalchemy import Column, Integer, ForeignKey, Date, DateTime, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base


class Attendance(Base):
    """One row per employee per working day."""
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    clock_in = Column(DateTime, nullable=True)
    clock_out = Column(DateTime, nullable=True)
    break_start = Column(DateTime, nullable=True)
    break_end = Column(DateTime, nullable=True)
    total_hours = Column(Numeric(6, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    employee = relationship("User", backref="attendance_records")

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_day"),
    )
