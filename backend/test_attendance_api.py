"""Clock in/out and attendance listing."""
from datetime import datetime, timedelta
from decimal import Decimal

from app.api.routes.attendance import worked_hours
from app.models.attendance import Attendance


def test_worked_hours_less_break():
    start = datetime(2026, 3, 15, 8, 0)
    assert worked_hours(start, start + timedelta(hours=9), 60) == Decimal("8.0")
    assert worked_hours(start, start + timedelta(minutes=90)) == Decimal("1.5")
    assert worked_hours(start, start + timedelta(minutes=10), 30) == Decimal("0")


def test_clock_in_once_per_day(client, pharmacist_headers):
    first = client.post("/attendance/clock-in", json={"notes": "Morning shift"}, headers=pharmacist_headers)
    assert first.status_code == 200
    assert first.json()["clockIn"] is not None
    assert first.json()["notes"] == "Morning shift"

    again = client.post("/attendance/clock-in", headers=pharmacist_headers)
    assert again.status_code == 400


def test_clock_out_computes_hours(client, db, pharmacist, pharmacist_headers):
    record = client.post("/attendance/clock-in", headers=pharmacist_headers).json()
    # pretend the shift started 8 hours ago
    db.query(Attendance).filter(Attendance.id == record["id"]).update(
        {Attendance.clock_in: datetime.utcnow() - timedelta(hours=8)}
    )
    db.commit()

    resp = client.post("/attendance/clock-out", json={"breakMinutes": 30}, headers=pharmacist_headers)
    assert resp.status_code == 200
    assert 7.4 <= resp.json()["totalHours"] <= 7.6

    assert client.post("/attendance/clock-out", headers=pharmacist_headers).status_code == 400


def test_clock_out_without_clock_in(client, cashier_headers):
    assert client.post("/attendance/clock-out", headers=cashier_headers).status_code == 400


def test_staff_see_only_their_records(client, pharmacist, pharmacist_headers, cashier_headers, admin_headers):
    client.post("/attendance/clock-in", headers=pharmacist_headers)
    client.post("/attendance/clock-in", headers=cashier_headers)

    own = client.get("/attendance", headers=cashier_headers).json()["attendance"]
    assert len(own) == 1

    everyone = client.get("/attendance", headers=admin_headers).json()["attendance"]
    assert len(everyone) == 2

    one = client.get("/attendance", params={"employeeId": pharmacist.id}, headers=admin_headers).json()
    assert [r["employeeId"] for r in one["attendance"]] == [pharmacist.id]
