"""Auth: register, login, verify.

- Password hashing with bcrypt
- Bearer JWT in the response body; clients keep it in their session store
- Generic error for bad email, bad password and inactive account
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.core.security import verify_password, get_password_hash, create_access_token
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.user import AuthResponse, UserCreate, UserLogin, UserResponse, VerifyResponse

router = APIRouter()


def _issue_token(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        extra_claims={"email": user.email, "role": user.role},
    )


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserCreate, request: Request, db: Session = Depends(get_db)):
    """Register a staff account. Role defaults to PHARMACIST."""
    if db.query(User).filter(User.email == data.email).first():
        AuditLog.log_authentication("register", data.email, False, _client_ip(request), reason="exists")
        raise BusinessError.conflict("User already exists")

    user = User(
        email=data.email,
        name=data.name,
        hashed_password=get_password_hash(data.password),
        role=(data.role or UserRole.PHARMACIST).value,
        phone=data.phone,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    AuditLog.log_authentication("register", user.email, True, _client_ip(request))
    return AuthResponse(user=user, token=_issue_token(user))


@router.post("/login", response_model=AuthResponse)
def login(data: UserLogin, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not user.is_active or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("failed_login", data.email, False, _client_ip(request), reason="bad credentials")
        raise BusinessError.unauthorized(f"login failed for {data.email}")

    AuditLog.log_authentication("login", user.email, True, _client_ip(request))
    return AuthResponse(user=user, token=_issue_token(user))


@router.post("/verify", response_model=VerifyResponse)
def verify(current_user: User = Depends(get_current_user)):
    """Check a stored token is still good and return its user."""
    return VerifyResponse(user=current_user)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user
