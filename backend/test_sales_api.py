"""Checkout, prescription fill, sales queries and receipts."""
from datetime import date

from app.models.alert import Alert
from app.models.medicine import Medicine
from app.models.sale import Sale
from app.services.sale_service import calculate_totals, line_subtotal
from conftest import make_customer, make_medicine


def _prescription(client, headers, customer, medicine, quantity=2, number="RX-1001"):
    resp = client.post("/prescriptions", json={
        "customerId": customer.id,
        "doctorName": "Dr. Kato",
        "prescriptionNumber": number,
        "issueDate": date.today().isoformat(),
        "items": [{
            "medicineId": medicine.id,
            "quantity": quantity,
            "dosage": "500mg",
            "frequency": "3x daily",
            "duration": "5 days",
        }],
    }, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _stock(db, medicine_id):
    db.expire_all()
    return db.get(Medicine, medicine_id).quantity


def test_totals_arithmetic():
    totals = calculate_totals([line_subtotal(4, "25"), line_subtotal(1, "5", "5")], discount="5")
    assert totals["subtotal"] == 100
    assert totals["tax"] == 10
    assert totals["total"] == 105


def test_checkout(client, db, cashier_headers):
    medicine = make_medicine(db, price="25.00", quantity=40, min_stock_level=5)
    customer = make_customer(db)

    resp = client.post("/sales", json={
        "customerId": customer.id,
        "items": [{"medicineId": medicine.id, "quantity": 4, "unitPrice": 25}],
        "paymentMethod": "CASH",
        "discount": 5,
    }, headers=cashier_headers)
    assert resp.status_code == 201, resp.text
    sale = resp.json()

    assert sale["subtotal"] == 100
    assert sale["tax"] == 10
    assert sale["discount"] == 5
    assert sale["total"] == 105
    assert sale["items"][0]["subtotal"] == 100
    assert sale["customer"]["name"] == customer.name
    assert _stock(db, medicine.id) == 36


def test_insufficient_stock_writes_nothing(client, db, cashier_headers):
    plenty = make_medicine(db, name="Plenty", quantity=50, batch_number="P")
    scarce = make_medicine(db, name="Scarce", quantity=1, batch_number="S")

    resp = client.post("/sales", json={
        "items": [
            {"medicineId": plenty.id, "quantity": 5, "unitPrice": 2.5},
            {"medicineId": scarce.id, "quantity": 3, "unitPrice": 2.5},
        ],
        "paymentMethod": "CARD",
    }, headers=cashier_headers)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient stock for Scarce. Available: 1, Required: 3"
    assert _stock(db, plenty.id) == 50
    assert db.query(Sale).count() == 0


def test_unknown_medicine(client, cashier_headers):
    resp = client.post("/sales", json={
        "items": [{"medicineId": 999, "quantity": 1, "unitPrice": 1}],
        "paymentMethod": "CASH",
    }, headers=cashier_headers)
    assert resp.status_code == 400


def test_sale_that_empties_shelf_raises_alert(client, db, cashier_headers):
    medicine = make_medicine(db, quantity=3, min_stock_level=2)
    client.post("/sales", json={
        "items": [{"medicineId": medicine.id, "quantity": 3, "unitPrice": 2.5}],
        "paymentMethod": "CASH",
    }, headers=cashier_headers)

    alert = db.query(Alert).filter(Alert.medicine_id == medicine.id).one()
    assert alert.severity == "CRITICAL"


def test_fill_prescription(client, db, pharmacist_headers):
    medicine = make_medicine(db, price="20.00", quantity=10)
    customer = make_customer(db)
    prescription = _prescription(client, pharmacist_headers, customer, medicine, quantity=2)

    resp = client.post(f"/prescriptions/{prescription['id']}/fill",
                       json={"paymentMethod": "INSURANCE"}, headers=pharmacist_headers)
    assert resp.status_code == 200, resp.text
    sale = resp.json()
    assert sale["subtotal"] == 40
    assert sale["tax"] == 4
    assert sale["total"] == 44
    assert sale["paymentMethod"] == "INSURANCE"
    assert sale["prescription"]["prescriptionNumber"] == "RX-1001"
    assert _stock(db, medicine.id) == 8

    status = client.get(f"/prescriptions/{prescription['id']}", headers=pharmacist_headers).json()["status"]
    assert status == "FILLED"

    again = client.post(f"/prescriptions/{prescription['id']}/fill", json={}, headers=pharmacist_headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Prescription is not pending"


def test_fill_without_stock_leaves_prescription_pending(client, db, pharmacist_headers):
    medicine = make_medicine(db, quantity=1)
    customer = make_customer(db)
    prescription = _prescription(client, pharmacist_headers, customer, medicine, quantity=5)

    resp = client.post(f"/prescriptions/{prescription['id']}/fill", headers=pharmacist_headers)
    assert resp.status_code == 400
    assert client.get(f"/prescriptions/{prescription['id']}",
                      headers=pharmacist_headers).json()["status"] == "PENDING"


def test_duplicate_prescription_number(client, db, pharmacist_headers):
    medicine = make_medicine(db)
    customer = make_customer(db)
    _prescription(client, pharmacist_headers, customer, medicine, number="RX-9")

    resp = client.post("/prescriptions", json={
        "customerId": customer.id, "doctorName": "Dr. Other", "prescriptionNumber": "RX-9",
        "issueDate": date.today().isoformat(),
        "items": [{"medicineId": medicine.id, "quantity": 1, "dosage": "1", "frequency": "1", "duration": "1"}],
    }, headers=pharmacist_headers)
    assert resp.status_code == 409


def test_prescription_search_by_customer_name(client, db, pharmacist_headers):
    medicine = make_medicine(db)
    _prescription(client, pharmacist_headers, make_customer(db, name="Grace Achieng"), medicine, number="RX-A")
    _prescription(client, pharmacist_headers, make_customer(db, name="Moses Mugisha"), medicine, number="RX-B")

    body = client.get("/prescriptions", params={"search": "grace"}, headers=pharmacist_headers).json()
    assert [p["prescriptionNumber"] for p in body["prescriptions"]] == ["RX-A"]

    pending = client.get("/prescriptions", params={"status": "PENDING"}, headers=pharmacist_headers).json()
    assert pending["pagination"]["total"] == 2


def test_list_filters_and_summary(client, db, cashier_headers):
    medicine = make_medicine(db, price="10.00", quantity=100)
    customer = make_customer(db)
    for method, quantity, customer_id in (("CASH", 1, None), ("CARD", 2, customer.id), ("CASH", 3, None)):
        client.post("/sales", json={
            "customerId": customer_id,
            "items": [{"medicineId": medicine.id, "quantity": quantity, "unitPrice": 10}],
            "paymentMethod": method,
        }, headers=cashier_headers)

    cash = client.get("/sales", params={"paymentMethod": "CASH"}, headers=cashier_headers).json()
    assert cash["pagination"]["total"] == 2

    mine = client.get("/sales", params={"customerId": customer.id}, headers=cashier_headers).json()
    assert [s["total"] for s in mine["sales"]] == [22]

    summary = client.get("/sales/stats/summary", headers=cashier_headers).json()
    assert summary["totalTransactions"] == 3
    assert summary["totalSales"] == 66
    assert summary["totalTax"] == 6
    methods = {row["paymentMethod"]: row["count"] for row in summary["salesByPaymentMethod"]}
    assert methods == {"CASH": 2, "CARD": 1}
    assert summary["topMedicines"][0]["quantity"] == 6
    assert summary["topMedicines"][0]["medicine"]["name"] == medicine.name


def test_receipt(client, db, cashier_headers, cashier):
    medicine = make_medicine(db, name="Paracetamol 500mg", price="25.00", quantity=40)
    sale = client.post("/sales", json={
        "items": [{"medicineId": medicine.id, "quantity": 4, "unitPrice": 25}],
        "paymentMethod": "CASH",
        "discount": 5,
    }, headers=cashier_headers).json()

    receipt = client.get(f"/sales/{sale['id']}/receipt", headers=cashier_headers).json()
    assert receipt["number"] == f"{sale['id']:08d}"
    assert receipt["cashier"] == cashier.name
    assert receipt["totals"] == {"subtotal": 100, "tax": 10, "discount": 5, "total": 105}
    assert receipt["lines"][0]["name"] == "Paracetamol 500mg"
    assert "TOTAL:" in receipt["text"]

    pdf = client.get(f"/sales/{sale['id']}/receipt.pdf", headers=cashier_headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_unknown_sale(client, cashier_headers):
    assert client.get("/sales/404", headers=cashier_headers).status_code == 404
    assert client.get("/sales/404/receipt", headers=cashier_headers).status_code == 404
