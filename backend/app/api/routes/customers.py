"""Customers: CRUD with search and per-customer history."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.api.pagination import paginate
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.customer import Customer
from app.models.prescription import Prescription
from app.models.sale import Sale
from app.models.user import User
from app.schemas.customer import (
    CustomerCreate,
    CustomerListItem,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdate,
)
from app.schemas.prescription import PrescriptionResponse
from app.schemas.sale import SaleResponse

router = APIRouter()

HISTORY_SIZE = 10


class CustomerDetail(CustomerResponse):
    prescriptions: List[PrescriptionResponse] = []
    sales: List[SaleResponse] = []


def _get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise BusinessError.not_found("Customer")
    return customer


def _clean_allergies(allergies: Optional[List[str]]) -> List[str]:
    """Trimmed, non-empty, order kept, duplicates dropped."""
    seen = []
    for allergy in allergies or []:
        allergy = allergy.strip()
        if allergy and allergy not in seen:
            seen.append(allergy)
    return seen


@router.get("", response_model=CustomerListResponse)
def list_customers(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Customer)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))

    customers, pagination = paginate(q.order_by(Customer.name), page, limit)

    ids = [c.id for c in customers]
    rx_counts = dict(
        db.query(Prescription.customer_id, func.count(Prescription.id))
        .filter(Prescription.customer_id.in_(ids))
        .group_by(Prescription.customer_id)
        .all()
    ) if ids else {}
    sale_counts = dict(
        db.query(Sale.customer_id, func.count(Sale.id))
        .filter(Sale.customer_id.in_(ids))
        .group_by(Sale.customer_id)
        .all()
    ) if ids else {}

    items = [
        CustomerListItem.model_validate(c).model_copy(update={
            "prescription_count": rx_counts.get(c.id, 0),
            "sale_count": sale_counts.get(c.id, 0),
        })
        for c in customers
    ]
    return CustomerListResponse(customers=items, pagination=pagination)


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Customer with the latest prescriptions and sales."""
    customer = _get_customer(db, customer_id)
    prescriptions = (
        db.query(Prescription)
        .filter(Prescription.customer_id == customer.id)
        .order_by(Prescription.created_at.desc(), Prescription.id.desc())
        .limit(HISTORY_SIZE)
        .all()
    )
    sales = (
        db.query(Sale)
        .filter(Sale.customer_id == customer.id)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(HISTORY_SIZE)
        .all()
    )
    detail = CustomerDetail.model_validate(customer)
    return detail.model_copy(update={
        "prescriptions": [PrescriptionResponse.model_validate(p) for p in prescriptions],
        "sales": [SaleResponse.model_validate(s) for s in sales],
    })


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    values = data.model_dump()
    values["allergies"] = _clean_allergies(values.get("allergies"))
    customer = Customer(**values)
    db.add(customer)
    db.commit()
    db.refresh(customer)

    AuditLog.log_action("create", "customer", customer.id, current_user.id)
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    updates: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = _get_customer(db, customer_id)

    changes = updates.model_dump(exclude_unset=True)
    if "allergies" in changes:
        changes["allergies"] = _clean_allergies(changes["allergies"])
    for field, value in changes.items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)

    AuditLog.log_action("update", "customer", customer.id, current_user.id, changes=changes)
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = _get_customer(db, customer_id)
    db.delete(customer)
    db.commit()

    AuditLog.log_action("delete", "customer", customer_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
