"""Medicines: inventory CRUD with search, filters and stock stats."""
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.api.pagination import paginate
from app.core.audit import AuditLog
from app.core.config import settings
from app.core.exceptions import BusinessError
from app.core.permissions import require_role
from app.models.enums import UserRole
from app.models.medicine import Medicine
from app.models.prescription import PrescriptionItem
from app.models.sale import SaleItem
from app.models.user import User
from app.schemas.medicine import (
    MedicineCreate,
    MedicineListResponse,
    MedicineResponse,
    MedicineStats,
    MedicineUpdate,
)
from app.services import alert_detector

router = APIRouter()


def _get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not medicine:
        raise BusinessError.not_found("Medicine")
    return medicine


def _stats(db: Session) -> MedicineStats:
    count, quantity = db.query(func.count(Medicine.id), func.sum(Medicine.quantity)).one()
    horizon = date.today() + timedelta(days=settings.EXPIRY_WINDOW_DAYS)
    return MedicineStats(
        total_medicines=count or 0,
        total_quantity=quantity or 0,
        low_stock_items=db.query(Medicine).filter(
            Medicine.quantity <= settings.LOW_STOCK_QUERY_THRESHOLD
        ).count(),
        expiring_soon=db.query(Medicine).filter(Medicine.expiry_date <= horizon).count(),
    )


@router.get("", response_model=MedicineListResponse)
def list_medicines(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, alias="lowStock"),
    expiring_soon: bool = Query(False, alias="expiringSoon"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Inventory list with search over name, generic name and manufacturer."""
    q = db.query(Medicine)

    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            Medicine.name.ilike(pattern),
            Medicine.generic_name.ilike(pattern),
            Medicine.manufacturer.ilike(pattern),
        ))
    if category:
        q = q.filter(Medicine.category == category)
    if low_stock:
        q = q.filter(Medicine.quantity <= settings.LOW_STOCK_QUERY_THRESHOLD)
    if expiring_soon:
        q = q.filter(Medicine.expiry_date <= date.today() + timedelta(days=settings.EXPIRY_WINDOW_DAYS))

    medicines, pagination = paginate(q.order_by(Medicine.name), page, limit)
    return MedicineListResponse(medicines=medicines, pagination=pagination, stats=_stats(db))


@router.get("/meta/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = db.query(Medicine.category).distinct().order_by(Medicine.category).all()
    return [r[0] for r in rows]


@router.get("/{medicine_id}", response_model=MedicineResponse)
def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_medicine(db, medicine_id)


@router.post("", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
def create_medicine(
    data: MedicineCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.PHARMACIST)),
):
    """Add a medicine batch. Raises a stock alert straight away if it arrives below threshold."""
    medicine = Medicine(**data.model_dump())
    medicine.name = medicine.name.strip()
    db.add(medicine)
    db.flush()

    alert_detector.check_medicine_stock(db, medicine)
    db.commit()
    db.refresh(medicine)

    AuditLog.log_action("create", "medicine", medicine.id, current_user.id,
                        changes={"name": medicine.name, "quantity": medicine.quantity})
    return medicine


@router.put("/{medicine_id}", response_model=MedicineResponse)
def update_medicine(
    medicine_id: int,
    updates: MedicineUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.PHARMACIST)),
):
    medicine = _get_medicine(db, medicine_id)

    changes = updates.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(medicine, field, value)
    db.flush()

    if "quantity" in changes or "min_stock_level" in changes:
        alert_detector.check_medicine_stock(db, medicine)
    db.commit()
    db.refresh(medicine)

    AuditLog.log_action("update", "medicine", medicine.id, current_user.id, changes=changes)
    return medicine


@router.delete("/{medicine_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    medicine = _get_medicine(db, medicine_id)
    history = (
        db.query(SaleItem.id).filter(SaleItem.medicine_id == medicine_id).first()
        or db.query(PrescriptionItem.id).filter(PrescriptionItem.medicine_id == medicine_id).first()
    )
    if history:
        raise BusinessError.conflict(f"{medicine.name} has sales or prescriptions on record and cannot be deleted")
    name = medicine.name
    db.delete(medicine)
    db.commit()

    AuditLog.log_action("delete", "medicine", medicine_id, current_user.id, changes={"name": name})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
