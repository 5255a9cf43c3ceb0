"""Customer endpoints."""
from conftest import make_customer


def test_create_cleans_allergies(client, pharmacist_headers):
    resp = client.post("/customers", json={
        "name": "Joseph Okello",
        "phone": "+256 772 000 222",
        "allergies": [" Penicillin ", "Sulfa", "", "Penicillin"],
    }, headers=pharmacist_headers)
    assert resp.status_code == 201
    assert resp.json()["allergies"] == ["Penicillin", "Sulfa"]


def test_list_with_counts_and_search(client, db, pharmacist_headers):
    make_customer(db, name="Alice Nakato", phone="0700111222")
    make_customer(db, name="Brian Ssemwogerere", phone="0700333444")

    body = client.get("/customers", params={"search": "nakato"}, headers=pharmacist_headers).json()
    assert [c["name"] for c in body["customers"]] == ["Alice Nakato"]
    assert body["customers"][0]["prescriptionCount"] == 0
    assert body["customers"][0]["saleCount"] == 0

    by_phone = client.get("/customers", params={"search": "333"}, headers=pharmacist_headers).json()
    assert [c["name"] for c in by_phone["customers"]] == ["Brian Ssemwogerere"]


def test_get_includes_history(client, db, pharmacist_headers):
    customer = make_customer(db)
    body = client.get(f"/customers/{customer.id}", headers=pharmacist_headers).json()
    assert body["name"] == customer.name
    assert body["prescriptions"] == []
    assert body["sales"] == []


def test_update_and_delete(client, db, pharmacist_headers):
    customer = make_customer(db)
    resp = client.put(f"/customers/{customer.id}", json={"address": "Plot 4, Ntinda"},
                      headers=pharmacist_headers)
    assert resp.json()["address"] == "Plot 4, Ntinda"

    assert client.delete(f"/customers/{customer.id}", headers=pharmacist_headers).status_code == 204
    assert client.get(f"/customers/{customer.id}", headers=pharmacist_headers).status_code == 404


def test_unknown_customer(client, pharmacist_headers):
    resp = client.get("/customers/999", headers=pharmacist_headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Customer not found"


def test_update_with_null_name_is_rejected(client, db, pharmacist_headers):
    customer = make_customer(db)
    resp = client.put(f"/customers/{customer.id}", json={"name": None}, headers=pharmacist_headers)
    assert resp.status_code == 422

    resp = client.put(f"/customers/{customer.id}", json={"allergies": None}, headers=pharmacist_headers)
    assert resp.status_code == 200
    assert resp.json()["allergies"] == []
