"""Dashboard stats, recent transactions and the sales chart."""
from datetime import datetime, timedelta

from app.models.sale import Sale
from conftest import make_customer, make_medicine


def _sell(client, headers, medicine, quantity=1, customer_id=None):
    resp = client.post("/sales", json={
        "customerId": customer_id,
        "items": [{"medicineId": medicine.id, "quantity": quantity, "unitPrice": 10}],
        "paymentMethod": "CASH",
    }, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_stats(client, db, cashier_headers):
    medicine = make_medicine(db, price="10.00", quantity=100, min_stock_level=5, batch_number="A")
    make_medicine(db, name="Low", quantity=3, min_stock_level=5, expires_in_days=20, batch_number="B")
    customer = make_customer(db)

    _sell(client, cashier_headers, medicine, 2, customer.id)
    _sell(client, cashier_headers, medicine, 1, customer.id)

    # one sale yesterday for the change figures
    yesterday = _sell(client, cashier_headers, medicine, 1)
    db.query(Sale).filter(Sale.id == yesterday["id"]).update(
        {Sale.sale_date: datetime.utcnow() - timedelta(days=1)}
    )
    db.commit()

    stats = client.get("/dashboard/stats", headers=cashier_headers).json()
    assert stats["sales"]["today"] == 33
    assert stats["sales"]["transactions"] == 2
    assert stats["sales"]["change"] == 200
    assert stats["sales"]["transactionChange"] == 100
    assert stats["medicines"]["total"] == 2
    assert stats["medicines"]["totalQuantity"] == 99
    assert stats["medicines"]["lowStock"] == 1
    assert stats["medicines"]["expiringSoon"] == 1
    assert stats["customers"] == {"total": 1, "servedToday": 1}
    assert stats["prescriptions"] == {"pending": 0}


def test_change_is_zero_without_history(client, cashier_headers):
    stats = client.get("/dashboard/stats", headers=cashier_headers).json()
    assert stats["sales"] == {"today": 0, "change": 0, "transactions": 0, "transactionChange": 0}


def test_recent_transactions(client, db, cashier_headers):
    medicine = make_medicine(db, price="10.00", quantity=100)
    customer = make_customer(db, name="Ruth Atim")
    _sell(client, cashier_headers, medicine, 1)
    latest = _sell(client, cashier_headers, medicine, 2, customer.id)

    rows = client.get("/dashboard/recent-transactions", headers=cashier_headers).json()
    assert len(rows) == 2
    assert rows[0]["id"] == latest["id"]
    assert rows[0]["customerName"] == "Ruth Atim"
    assert rows[1]["customerName"] is None


def test_sales_chart(client, db, cashier_headers):
    medicine = make_medicine(db, price="10.00", quantity=100)
    _sell(client, cashier_headers, medicine, 1)

    points = client.get("/dashboard/sales-chart", params={"days": 3}, headers=cashier_headers).json()
    assert len(points) == 3
    assert points[-1]["date"] == datetime.utcnow().date().isoformat()
    assert points[-1]["sales"] == 11
    assert points[-1]["transactions"] == 1
    assert points[0]["sales"] == 0

    default = client.get("/dashboard/sales-chart", headers=cashier_headers).json()
    assert len(default) == 7
