"""
Alert detector rules and de-duplication.

Classification runs on plain Medicine objects (no session); the
check_* functions run against the in-memory database.
"""
from datetime import date, timedelta

import pytest

from app.models.alert import Alert
from app.models.enums import AlertSeverity, AlertType
from app.models.medicine import Medicine
from app.services import alert_detector
from conftest import make_medicine

TODAY = date(2026, 3, 15)


def _medicine(quantity=50, min_stock_level=10, expires_in_days=365):
    return Medicine(
        id=1,
        name="Amoxicillin 250mg",
        quantity=quantity,
        min_stock_level=min_stock_level,
        expiry_date=TODAY + timedelta(days=expires_in_days),
        batch_number="AMX-7",
    )


# --- stock rule ---

def test_out_of_stock_is_critical():
    condition = alert_detector.classify_stock(_medicine(quantity=0))
    assert condition.type == AlertType.STOCK
    assert condition.severity == AlertSeverity.CRITICAL
    assert condition.title == "Out of Stock"
    assert condition.message == "Amoxicillin 250mg is out of stock"


def test_below_minimum_is_high():
    condition = alert_detector.classify_stock(_medicine(quantity=3, min_stock_level=10))
    assert condition.severity == AlertSeverity.HIGH
    assert condition.title == "Low Stock Alert"
    assert condition.message == "Amoxicillin 250mg - Only 3 units remaining"


def test_at_minimum_is_fine():
    assert alert_detector.classify_stock(_medicine(quantity=10, min_stock_level=10)) is None


def test_zero_minimum_only_alerts_when_empty():
    assert alert_detector.classify_stock(_medicine(quantity=1, min_stock_level=0)) is None
    assert alert_detector.classify_stock(_medicine(quantity=0, min_stock_level=0)).severity == AlertSeverity.CRITICAL


# --- expiry rule ---

@pytest.mark.parametrize("days,severity,title", [
    (-3, AlertSeverity.CRITICAL, "Medicine Expired"),
    (0, AlertSeverity.CRITICAL, "Medicine Expired"),
    (1, AlertSeverity.HIGH, "Expiring Soon"),
    (7, AlertSeverity.HIGH, "Expiring Soon"),
    (8, AlertSeverity.MEDIUM, "Expiring Soon"),
    (30, AlertSeverity.MEDIUM, "Expiring Soon"),
])
def test_expiry_bands(days, severity, title):
    condition = alert_detector.classify_expiry(_medicine(expires_in_days=days), TODAY)
    assert condition.type == AlertType.EXPIRY
    assert condition.severity == severity
    assert condition.title == title


def test_beyond_window_is_fine():
    assert alert_detector.classify_expiry(_medicine(expires_in_days=31), TODAY) is None


def test_expiry_messages():
    expired = alert_detector.classify_expiry(_medicine(expires_in_days=-1), TODAY)
    assert expired.message == "Amoxicillin 250mg (batch AMX-7) expired on 2026-03-14"

    tomorrow = alert_detector.classify_expiry(_medicine(expires_in_days=1), TODAY)
    assert tomorrow.message.endswith("expires in 1 day")

    week = alert_detector.classify_expiry(_medicine(expires_in_days=7), TODAY)
    assert week.message.endswith("expires in 7 days")


def test_dedupe_key_format():
    condition = alert_detector.classify_stock(_medicine(quantity=0))
    assert alert_detector.dedupe_key(condition, 42, TODAY) == "STOCK:42:CRITICAL:2026-03-15"


# --- materialization ---

def test_check_stock_creates_one_alert_per_condition(db):
    empty = make_medicine(db, name="Empty", quantity=0, batch_number="E1")
    low = make_medicine(db, name="Low", quantity=2, min_stock_level=10, batch_number="L1")
    make_medicine(db, name="Plenty", quantity=500, batch_number="P1")

    created = alert_detector.check_stock(db, today=TODAY)

    assert len(created) == 2
    by_medicine = {a.medicine_id: a for a in created}
    assert by_medicine[empty.id].severity == "CRITICAL"
    assert by_medicine[low.id].severity == "HIGH"
    assert db.query(Alert).count() == 2


def test_rerun_same_day_creates_nothing(db):
    make_medicine(db, name="Empty", quantity=0)

    assert len(alert_detector.check_stock(db, today=TODAY)) == 1
    assert alert_detector.check_stock(db, today=TODAY) == []
    assert db.query(Alert).count() == 1


def test_rerun_after_read_creates_again(db):
    make_medicine(db, name="Empty", quantity=0)
    first = alert_detector.check_stock(db, today=TODAY)[0]
    first.is_read = True
    db.commit()

    assert len(alert_detector.check_stock(db, today=TODAY)) == 1
    assert db.query(Alert).count() == 2


def test_unread_alert_blocks_following_days(db):
    make_medicine(db, name="Empty", quantity=0)

    for offset in range(5):
        alert_detector.check_stock(db, today=TODAY + timedelta(days=offset))

    assert db.query(Alert).filter(Alert.is_read.is_(False)).count() == 1


def test_next_day_after_read_creates_again(db):
    make_medicine(db, name="Empty", quantity=0)
    first = alert_detector.check_stock(db, today=TODAY)[0]
    first.is_read = True
    db.commit()

    again = alert_detector.check_stock(db, today=TODAY + timedelta(days=1))
    assert len(again) == 1
    assert again[0].dedupe_key.endswith((TODAY + timedelta(days=1)).isoformat())


def test_severity_change_raises_new_alert(db):
    medicine = make_medicine(db, name="Falling", quantity=3, min_stock_level=10)
    low = alert_detector.check_medicine_stock(db, medicine, today=TODAY)
    db.commit()
    assert low.severity == "HIGH"

    medicine.quantity = 0
    db.flush()
    out = alert_detector.check_medicine_stock(db, medicine, today=TODAY)
    db.commit()

    assert out is not None
    assert out.severity == "CRITICAL"
    assert db.query(Alert).filter(Alert.medicine_id == medicine.id).count() == 2


def test_check_expiry_window(db):
    make_medicine(db, name="Week", expires_in_days=7, batch_number="W")
    make_medicine(db, name="Month", expires_in_days=30, batch_number="M")
    make_medicine(db, name="Later", expires_in_days=31, batch_number="L")
    make_medicine(db, name="Gone", expires_in_days=-2, batch_number="G")

    # make_medicine dates relative to the real today
    created = alert_detector.check_expiry(db, today=date.today())

    severities = sorted(a.severity for a in created)
    assert severities == ["CRITICAL", "HIGH", "MEDIUM"]
    assert alert_detector.check_expiry(db, today=date.today()) == []


def test_run_all_checks_counts_both_rules(db):
    make_medicine(db, name="Empty and expired", quantity=0, expires_in_days=-1)

    assert alert_detector.run_all_checks(db, today=date.today()) == 2
    assert alert_detector.run_all_checks(db, today=date.today()) == 0
