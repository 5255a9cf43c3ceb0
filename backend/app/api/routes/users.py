"""Staff directory. Listing and edits are ADMIN-only; anyone can read a profile."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.core.permissions import require_role
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.user import EmployeeResponse, UserUpdate

router = APIRouter()


@router.get("", response_model=List[EmployeeResponse])
def list_users(
    role: Optional[UserRole] = Query(None),
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role.value)
    if active is not None:
        q = q.filter(User.is_active.is_(active))
    return q.order_by(User.name).all()


@router.get("/{user_id}", response_model=EmployeeResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise BusinessError.not_found("User")
    return user


@router.put("/{user_id}", response_model=EmployeeResponse)
def update_user(
    user_id: int,
    updates: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise BusinessError.not_found("User")

    changes = updates.model_dump(exclude_unset=True)
    if user.id == current_user.id and changes.get("is_active") is False:
        raise BusinessError.bad_request("You cannot deactivate your own account")

    for field, value in changes.items():
        if field == "role" and value is not None:
            value = value.value
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    AuditLog.log_action("update", "user", user.id, current_user.id, changes=changes)
    return user
