from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Text
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from app.db.base import Base


class Prescription(Base):
    """Status flow: PENDING -> FILLED (via fill) | PARTIAL | CANCELLED."""
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    doctor_name = Column(String(255), nullable=False)
    prescription_number = Column(String(64), unique=True, nullable=False, index=True)
    issue_date = Column(Date, nullable=False)
    status = Column(String(32), nullable=False, default="PENDING")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", backref=backref("prescriptions", cascade="all, delete-orphan"))
    items = relationship("PrescriptionItem", back_populates="prescription", cascade="all, delete-orphan")


class PrescriptionItem(Base):
    __tablename__ = "prescription_items"

    id = Column(Integer, primary_key=True, index=True)
    prescription_id = Column(Integer, ForeignKey("prescriptions.id", ondelete="CASCADE"), nullable=False)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    dosage = Column(String(128), nullable=False)
    frequency = Column(String(128), nullable=False)
    duration = Column(String(128), nullable=False)
    instructions = Column(Text, nullable=True)

    prescription = relationship("Prescription", back_populates="items")
    medicine = relationship("Medicine")
