"""Sale checkout and prescription fill.

Both run as one transaction: validate stock, persist the sale with its
items, decrement stock, run the stock alert rule for each touched medicine,
then commit once. Any error rolls the whole thing back.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.enums import PaymentMethod, PrescriptionStatus
from app.models.prescription import Prescription
from app.models.sale import Sale, SaleItem
from app.models.user import User
from app.schemas.sale import SaleCreate
from app.services import alert_detector
from app.services.inventory_service import decrement_stock, ensure_available, get_medicine

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class SaleError(ValueError):
    """Business-rule violation during checkout."""


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(quantity: int, unit_price, discount=0) -> Decimal:
    return to_money(Decimal(quantity) * to_money(unit_price) - to_money(discount))


def calculate_totals(item_subtotals: Iterable[Decimal], discount=0) -> Dict[str, Decimal]:
    """
    Sale totals from line subtotals.

    Returns:
        dict with subtotal, tax, discount, total where
        tax = subtotal * TAX_RATE and total = subtotal + tax - discount
    """
    subtotal = to_money(sum(item_subtotals, Decimal("0")))
    tax = to_money(subtotal * Decimal(settings.TAX_RATE))
    discount = to_money(discount)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "discount": discount,
        "total": subtotal + tax - discount,
    }


def _finish_sale(db: Session, sale: Sale, quantities: List[tuple]) -> Sale:
    stock_alerts = []
    for medicine, quantity in quantities:
        decrement_stock(db, medicine, quantity)
        alert = alert_detector.check_medicine_stock(db, medicine)
        if alert:
            stock_alerts.append(alert)
    db.commit()
    db.refresh(sale)
    if stock_alerts:
        logger.info(f"Sale #{sale.id} raised {len(stock_alerts)} stock alerts")
    return sale


def create_sale(db: Session, data: SaleCreate, cashier: User) -> Sale:
    """Checkout a cart. Raises SaleError / StockError before anything is written."""
    items: List[SaleItem] = []
    quantities = []
    for line in data.items:
        medicine = get_medicine(db, line.medicine_id)
        ensure_available(medicine, line.quantity)
        subtotal = line_subtotal(line.quantity, line.unit_price, line.discount)
        if subtotal < 0:
            raise SaleError(f"Discount exceeds line amount for {medicine.name}")
        items.append(SaleItem(
            medicine_id=medicine.id,
            quantity=line.quantity,
            unit_price=to_money(line.unit_price),
            discount=to_money(line.discount),
            subtotal=subtotal,
        ))
        quantities.append((medicine, line.quantity))

    totals = calculate_totals((i.subtotal for i in items), data.discount)
    if totals["total"] < 0:
        raise SaleError("Discount exceeds sale total")

    sale = Sale(
        customer_id=data.customer_id,
        cashier_id=cashier.id,
        payment_method=data.payment_method.value,
        notes=data.notes,
        items=items,
        **totals,
    )
    try:
        db.add(sale)
        db.flush()
        return _finish_sale(db, sale, quantities)
    except Exception:
        db.rollback()
        raise


def fill_prescription(
    db: Session,
    prescription: Prescription,
    cashier: User,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    discount=0,
) -> Sale:
    """Turn a PENDING prescription into a sale at current medicine prices."""
    if prescription.status != PrescriptionStatus.PENDING.value:
        raise SaleError("Prescription is not pending")

    for item in prescription.items:
        ensure_available(item.medicine, item.quantity)

    items = [
        SaleItem(
            medicine_id=item.medicine_id,
            quantity=item.quantity,
            unit_price=to_money(item.medicine.price),
            discount=Decimal("0.00"),
            subtotal=line_subtotal(item.quantity, item.medicine.price),
        )
        for item in prescription.items
    ]
    totals = calculate_totals((i.subtotal for i in items), discount)
    if totals["total"] < 0:
        raise SaleError("Discount exceeds sale total")

    sale = Sale(
        customer_id=prescription.customer_id,
        prescription_id=prescription.id,
        cashier_id=cashier.id,
        payment_method=payment_method.value,
        items=items,
        **totals,
    )
    try:
        db.add(sale)
        prescription.status = PrescriptionStatus.FILLED.value
        db.flush()
        return _finish_sale(db, sale, [(item.medicine, item.quantity) for item in prescription.items])
    except Exception:
        db.rollback()
        raise


def load_sale(db: Session, sale_id: int) -> Optional[Sale]:
    return db.query(Sale).filter(Sale.id == sale_id).first()
