from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class Medicine(Base):
    """
    Stock-keeping record for one batch of a medicine.

    quantity is the current stock on hand and never goes negative;
    min_stock_level is the reorder threshold read by the alert detector.
    """
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    generic_name = Column(String(255), nullable=True)
    manufacturer = Column(String(255), nullable=False)
    category = Column(String(128), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=10)
    expiry_date = Column(Date, nullable=False, index=True)
    batch_number = Column(String(128), nullable=False)
    location = Column(String(128), nullable=True)  # shelf / bin
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="chk_medicine_quantity_non_negative"),
        CheckConstraint("min_stock_level >= 0", name="chk_medicine_min_stock_non_negative"),
    )

    def __repr__(self):
        return f"<Medicine id={self.id} name={self.name} qty={self.quantity}>"
