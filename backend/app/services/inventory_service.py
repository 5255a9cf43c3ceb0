"""Stock reads and decrements. Used by sales and prescription fills."""
from sqlalchemy.orm import Session

from app.models.medicine import Medicine


class StockError(ValueError):
    """Unknown medicine or not enough units on hand."""


def get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not medicine:
        raise StockError(f"Medicine not found: {medicine_id}")
    return medicine


def ensure_available(medicine: Medicine, quantity: int) -> None:
    if medicine.quantity < quantity:
        raise StockError(
            f"Insufficient stock for {medicine.name}. "
            f"Available: {medicine.quantity}, Required: {quantity}"
        )


def decrement_stock(db: Session, medicine: Medicine, quantity: int) -> Medicine:
    """Take `quantity` units off the shelf. Caller commits."""
    ensure_available(medicine, quantity)
    medicine.quantity = medicine.quantity - quantity
    db.flush()
    return medicine
