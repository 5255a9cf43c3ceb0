"""
Alert: a persisted notification classifying a stock or expiry condition.
Created by the detector or manually; only is_read changes afterwards.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, Text, Index
from sqlalchemy.orm import relationship
from app.db.base import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(32), nullable=False, index=True)  # STOCK | EXPIRY | SYSTEM | PRESCRIPTION
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, index=True)  # LOW | MEDIUM | HIGH | CRITICAL
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    # Set for detector alerts only
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="SET NULL"), nullable=True)
    dedupe_key = Column(String(128), nullable=True)

    medicine = relationship("Medicine")

    __table_args__ = (
        Index("ix_alerts_unread_condition", is_read, medicine_id, type, severity),
    )

    def __repr__(self):
        return f"<Alert {self.id}: {self.type}/{self.severity} {self.title!r}>"
