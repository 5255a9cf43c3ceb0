"""
Shared test fixtures: in-memory SQLite, FastAPI TestClient, staff accounts.

Environment is set before `app` is imported because Settings reads it
at import time.
"""
import os
import sys
from datetime import date, timedelta
from pathlib import Path

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ALERT_SCHEDULER_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"

sys.path.insert(0, str(Path(__file__).parent))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token, get_password_hash
from app.db.base import Base
from app.main import app
from app.models.customer import Customer
from app.models.enums import UserRole
from app.models.medicine import Medicine
from app.models.user import User

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: lifespan (init_db, scheduler) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email, role=UserRole.PHARMACIST, name=None, is_active=True):
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        hashed_password=get_password_hash(PASSWORD),
        role=role.value,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token(str(user.id), extra_claims={"email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def make_medicine(db, name="Paracetamol 500mg", quantity=100, min_stock_level=10,
                  expires_in_days=365, price="2.50", category="Analgesic", **kwargs):
    medicine = Medicine(
        name=name,
        generic_name=kwargs.pop("generic_name", "Acetaminophen"),
        manufacturer=kwargs.pop("manufacturer", "Cipla"),
        category=category,
        price=price,
        quantity=quantity,
        min_stock_level=min_stock_level,
        expiry_date=date.today() + timedelta(days=expires_in_days),
        batch_number=kwargs.pop("batch_number", "B-001"),
        **kwargs,
    )
    db.add(medicine)
    db.commit()
    db.refresh(medicine)
    return medicine


def make_customer(db, name="Jane Namubiru", **kwargs):
    customer = Customer(
        name=name,
        phone=kwargs.pop("phone", "+256 701 000 111"),
        email=kwargs.pop("email", None),
        allergies=kwargs.pop("allergies", []),
        **kwargs,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def admin(db):
    return make_user(db, "admin@pharmacy.test", UserRole.ADMIN, name="Admin")


@pytest.fixture
def pharmacist(db):
    return make_user(db, "pharmacist@pharmacy.test", UserRole.PHARMACIST, name="Pat Pharmacist")


@pytest.fixture
def cashier(db):
    return make_user(db, "cashier@pharmacy.test", UserRole.CASHIER, name="Carl Cashier")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def pharmacist_headers(pharmacist):
    return auth_headers(pharmacist)


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)
