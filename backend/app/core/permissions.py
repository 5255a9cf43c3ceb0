"""
Role checks for staff APIs.
Trust: only ADMIN manages staff and deletes medicines; ADMIN and PHARMACIST edit stock.
"""
from typing import Callable

from fastapi import Depends

from app.api.deps import get_current_user
from app.core.exceptions import BusinessError
from app.models.enums import UserRole
from app.models.user import User


def require_role(*roles: UserRole) -> Callable[..., User]:
    """Dependency factory: `Depends(require_role(UserRole.ADMIN))`."""
    allowed = {r.value for r in roles}

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise BusinessError.forbidden(
                f"user {current_user.id} with role {current_user.role} needs one of {sorted(allowed)}"
            )
        return current_user

    return checker
