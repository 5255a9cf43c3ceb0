"""
Alert Detector: classify medicines into stock/expiry conditions and
materialize Alert rows.

RULES:
- Stock:  quantity == 0               -> CRITICAL "Out of Stock"
          quantity < min_stock_level  -> HIGH     "Low Stock Alert"
- Expiry: days remaining <= 0         -> CRITICAL "Medicine Expired"
          1..7 days                   -> HIGH     "Expiring Soon"
          8..30 days                  -> MEDIUM   "Expiring Soon"

DE-DUPLICATION:
Each condition gets a key "{type}:{medicine_id}:{severity}:{YYYY-MM-DD}",
stamped with the detection day. A new alert is skipped while an unread alert
with the same type, medicine and severity exists on any day, so re-running a
check on an unchanged condition creates nothing until it is read. A change
of severity (low stock -> out of stock) is a new key and raises a new alert.

Classification is pure (no DB); materialization flushes into the caller's
session. check_stock/check_expiry commit; check_medicine_stock does not,
so it can join a sale transaction.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.audit import AuditLog
from app.core.config import settings
from app.models.alert import Alert
from app.models.enums import AlertSeverity, AlertType
from app.models.medicine import Medicine

logger = logging.getLogger(__name__)

OUT_OF_STOCK_TITLE = "Out of Stock"
LOW_STOCK_TITLE = "Low Stock Alert"
EXPIRED_TITLE = "Medicine Expired"
EXPIRING_TITLE = "Expiring Soon"


@dataclass(frozen=True)
class AlertCondition:
    type: AlertType
    severity: AlertSeverity
    title: str
    message: str


def classify_stock(medicine: Medicine) -> Optional[AlertCondition]:
    quantity = int(medicine.quantity or 0)
    if quantity == 0:
        return AlertCondition(
            type=AlertType.STOCK,
            severity=AlertSeverity.CRITICAL,
            title=OUT_OF_STOCK_TITLE,
            message=f"{medicine.name} is out of stock",
        )
    if quantity < int(medicine.min_stock_level or 0):
        return AlertCondition(
            type=AlertType.STOCK,
            severity=AlertSeverity.HIGH,
            title=LOW_STOCK_TITLE,
            message=f"{medicine.name} - Only {quantity} units remaining",
        )
    return None


def days_until_expiry(expiry_date: date, today: date) -> int:
    return (expiry_date - today).days


def classify_expiry(medicine: Medicine, today: date) -> Optional[AlertCondition]:
    days = days_until_expiry(medicine.expiry_date, today)

    if days <= 0:
        return AlertCondition(
            type=AlertType.EXPIRY,
            severity=AlertSeverity.CRITICAL,
            title=EXPIRED_TITLE,
            message=(
                f"{medicine.name} (batch {medicine.batch_number}) "
                f"expired on {medicine.expiry_date.isoformat()}"
            ),
        )
    if days > settings.EXPIRY_WINDOW_DAYS:
        return None

    severity = AlertSeverity.HIGH if days <= settings.EXPIRY_URGENT_DAYS else AlertSeverity.MEDIUM
    unit = "day" if days == 1 else "days"
    return AlertCondition(
        type=AlertType.EXPIRY,
        severity=severity,
        title=EXPIRING_TITLE,
        message=f"{medicine.name} (batch {medicine.batch_number}) expires in {days} {unit}",
    )


def dedupe_key(condition: AlertCondition, medicine_id: int, today: date) -> str:
    return f"{condition.type.value}:{medicine_id}:{condition.severity.value}:{today.isoformat()}"


def materialize(db: Session, medicine: Medicine, condition: AlertCondition, today: date) -> Optional[Alert]:
    """Add an Alert for `condition` unless an unread one for the same medicine and severity exists."""
    key = dedupe_key(condition, medicine.id, today)
    existing = db.query(Alert.id).filter(
        Alert.type == condition.type.value,
        Alert.medicine_id == medicine.id,
        Alert.severity == condition.severity.value,
        Alert.is_read.is_(False),
    ).first()
    if existing:
        logger.debug(f"[AlertDetector] Suppressed duplicate {key}")
        return None

    alert = Alert(
        type=condition.type.value,
        title=condition.title,
        message=condition.message,
        severity=condition.severity.value,
        is_read=False,
        medicine_id=medicine.id,
        dedupe_key=key,
    )
    db.add(alert)
    db.flush()
    return alert


def check_medicine_stock(db: Session, medicine: Medicine, today: Optional[date] = None) -> Optional[Alert]:
    """Stock rule for one medicine after a stock change. Caller commits."""
    condition = classify_stock(medicine)
    if condition is None:
        return None
    return materialize(db, medicine, condition, today or date.today())


def check_stock(db: Session, today: Optional[date] = None) -> List[Alert]:
    """Run the stock rule over every medicine at or below its threshold."""
    today = today or date.today()
    candidates = db.query(Medicine).filter(
        or_(Medicine.quantity == 0, Medicine.quantity < Medicine.min_stock_level)
    ).order_by(Medicine.id).all()

    created = []
    for medicine in candidates:
        alert = check_medicine_stock(db, medicine, today)
        if alert:
            created.append(alert)
    db.commit()

    logger.info(f"[AlertDetector] Stock check: {len(candidates)} flagged, {len(created)} new alerts")
    return created


def check_expiry(db: Session, today: Optional[date] = None) -> List[Alert]:
    """Run the expiry rule over every medicine expiring within the window (or already expired)."""
    today = today or date.today()
    horizon = today + timedelta(days=settings.EXPIRY_WINDOW_DAYS)
    candidates = db.query(Medicine).filter(
        Medicine.expiry_date <= horizon
    ).order_by(Medicine.expiry_date, Medicine.id).all()

    created = []
    for medicine in candidates:
        condition = classify_expiry(medicine, today)
        if condition is None:
            continue
        alert = materialize(db, medicine, condition, today)
        if alert:
            created.append(alert)
    db.commit()

    logger.info(f"[AlertDetector] Expiry check: {len(candidates)} flagged, {len(created)} new alerts")
    return created


def run_all_checks(db: Session, today: Optional[date] = None) -> int:
    """Stock then expiry. Returns the number of new alerts."""
    stock_alerts = check_stock(db, today)
    expiry_alerts = check_expiry(db, today)
    AuditLog.log_alerts_created("scheduler", [a.id for a in stock_alerts + expiry_alerts])
    return len(stock_alerts) + len(expiry_alerts)
