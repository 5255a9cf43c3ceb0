"""Prescriptions: create, track status, and fill into a sale."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.api.pagination import paginate
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.customer import Customer
from app.models.enums import PrescriptionStatus
from app.models.medicine import Medicine
from app.models.prescription import Prescription, PrescriptionItem
from app.models.user import User
from app.schemas.prescription import (
    PrescriptionCreate,
    PrescriptionFill,
    PrescriptionListResponse,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from app.schemas.sale import SaleResponse
from app.services import sale_service

router = APIRouter()


def _get_prescription(db: Session, prescription_id: int) -> Prescription:
    prescription = db.query(Prescription).filter(Prescription.id == prescription_id).first()
    if not prescription:
        raise BusinessError.not_found("Prescription")
    return prescription


@router.get("", response_model=PrescriptionListResponse)
def list_prescriptions(
    status_filter: Optional[PrescriptionStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Search covers prescription number, doctor and customer name."""
    q = db.query(Prescription).join(Customer, Prescription.customer_id == Customer.id)
    if status_filter:
        q = q.filter(Prescription.status == status_filter.value)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            Prescription.prescription_number.ilike(pattern),
            Prescription.doctor_name.ilike(pattern),
            Customer.name.ilike(pattern),
        ))

    prescriptions, pagination = paginate(
        q.order_by(Prescription.created_at.desc(), Prescription.id.desc()), page, limit
    )
    return PrescriptionListResponse(prescriptions=prescriptions, pagination=pagination)


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
def get_prescription(
    prescription_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_prescription(db, prescription_id)


@router.post("", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not db.query(Customer.id).filter(Customer.id == data.customer_id).first():
        raise BusinessError.bad_request(f"Customer not found: {data.customer_id}")

    number = data.prescription_number.strip()
    if db.query(Prescription.id).filter(Prescription.prescription_number == number).first():
        raise BusinessError.conflict(f"Prescription {number} already exists")

    medicine_ids = {item.medicine_id for item in data.items}
    known = {row[0] for row in db.query(Medicine.id).filter(Medicine.id.in_(medicine_ids)).all()}
    missing = sorted(medicine_ids - known)
    if missing:
        raise BusinessError.bad_request(f"Medicine not found: {missing[0]}")

    prescription = Prescription(
        customer_id=data.customer_id,
        doctor_name=data.doctor_name,
        prescription_number=number,
        issue_date=data.issue_date,
        notes=data.notes,
        status=PrescriptionStatus.PENDING.value,
        items=[PrescriptionItem(**item.model_dump()) for item in data.items],
    )
    db.add(prescription)
    db.commit()
    db.refresh(prescription)

    AuditLog.log_action("create", "prescription", prescription.id, current_user.id,
                        changes={"number": number, "items": len(data.items)})
    return prescription


@router.put("/{prescription_id}", response_model=PrescriptionResponse)
def update_prescription(
    prescription_id: int,
    updates: PrescriptionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Status and notes only; items are fixed once written."""
    prescription = _get_prescription(db, prescription_id)
    if updates.status is not None:
        prescription.status = updates.status.value
    if updates.notes is not None:
        prescription.notes = updates.notes
    db.commit()
    db.refresh(prescription)

    AuditLog.log_action("update", "prescription", prescription.id, current_user.id,
                        changes=updates.model_dump(exclude_unset=True, mode="json"))
    return prescription


@router.post("/{prescription_id}/fill", response_model=SaleResponse)
def fill_prescription(
    prescription_id: int,
    data: Optional[PrescriptionFill] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Dispense a PENDING prescription: creates the sale, decrements stock, marks FILLED."""
    data = data or PrescriptionFill()
    prescription = _get_prescription(db, prescription_id)
    try:
        sale = sale_service.fill_prescription(
            db, prescription, current_user,
            payment_method=data.payment_method,
            discount=data.discount,
        )
    except ValueError as e:
        raise BusinessError.bad_request(str(e))

    AuditLog.log_action("fill", "prescription", prescription_id, current_user.id,
                        changes={"sale_id": sale.id, "total": str(sale.total)})
    return sale
