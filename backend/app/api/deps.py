"""FastAPI dependencies: a DB session per request and the signed-in staff member.

Clients send `Authorization: Bearer <jwt>`; the token subject is the user id.
"""
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.core.security import decode_access_token
from app.models.user import User

bearer = HTTPBearer(auto_error=False)


def _reject(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> int:
    if credentials is None:
        raise _reject("No token provided")

    subject = decode_access_token(credentials.credentials)
    if not subject or not subject.isdigit():
        raise _reject("Invalid or expired token")
    return int(subject)


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """The token's user, if it still exists and is active."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise _reject("Invalid token")
    return user
