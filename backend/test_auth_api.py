"""Registration, login, token verification and role checks."""
from app.models.enums import UserRole
from conftest import PASSWORD, auth_headers, make_user


def test_register_returns_user_and_token(client):
    resp = client.post("/auth/register", json={
        "email": "new@pharmacy.test", "name": "New Hire", "password": "longenough",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["email"] == "new@pharmacy.test"
    assert body["user"]["role"] == "PHARMACIST"
    assert body["user"]["isActive"] is True
    assert body["token"]


def test_register_duplicate_email_conflicts(client, pharmacist):
    resp = client.post("/auth/register", json={
        "email": pharmacist.email, "name": "Again", "password": "longenough",
    })
    assert resp.status_code == 409


def test_register_validates_input(client):
    resp = client.post("/auth/register", json={"email": "not-an-email", "name": "X", "password": "123"})
    assert resp.status_code == 422


def test_login_and_verify(client, pharmacist):
    resp = client.post("/auth/login", json={"email": pharmacist.email, "password": PASSWORD})
    assert resp.status_code == 200
    token = resp.json()["token"]

    verify = client.post("/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert verify.status_code == 200
    assert verify.json()["user"]["id"] == pharmacist.id


def test_login_wrong_password(client, pharmacist):
    resp = client.post("/auth/login", json={"email": pharmacist.email, "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


def test_login_unknown_email_same_error(client):
    resp = client.post("/auth/login", json={"email": "ghost@pharmacy.test", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


def test_inactive_user_cannot_login(client, db):
    user = make_user(db, "gone@pharmacy.test", is_active=False)
    resp = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 401


def test_missing_and_bad_tokens(client):
    assert client.get("/auth/me").status_code == 401
    resp = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid or expired token"


def test_me(client, cashier, cashier_headers):
    resp = client.get("/auth/me", headers=cashier_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "CASHIER"


def test_users_list_is_admin_only(client, admin_headers, cashier_headers, cashier):
    assert client.get("/users", headers=cashier_headers).status_code == 403

    resp = client.get("/users", headers=admin_headers)
    assert resp.status_code == 200
    emails = [u["email"] for u in resp.json()]
    assert cashier.email in emails


def test_admin_updates_role(client, db, admin_headers):
    tech = make_user(db, "tech@pharmacy.test", UserRole.TECHNICIAN)
    resp = client.put(f"/users/{tech.id}", json={"role": "PHARMACIST"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "PHARMACIST"


def test_deactivated_token_is_rejected(client, db, admin_headers):
    user = make_user(db, "leaving@pharmacy.test")
    headers = auth_headers(user)
    assert client.get("/auth/me", headers=headers).status_code == 200

    client.put(f"/users/{user.id}", json={"isActive": False}, headers=admin_headers)
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_user_update_with_null_role_is_rejected(client, db, admin_headers):
    tech = make_user(db, "tech2@pharmacy.test", UserRole.TECHNICIAN)
    resp = client.put(f"/users/{tech.id}", json={"role": None}, headers=admin_headers)
    assert resp.status_code == 422
