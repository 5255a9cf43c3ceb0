from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Numeric
from sqlalchemy.sql import func
from app.db.base import Base


class User(Base):
    """Staff account. Doubles as the employee record for attendance and sales."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="PHARMACIST")  # ADMIN | PHARMACIST | TECHNICIAN | CASHIER
    phone = Column(String(64), nullable=True)
    address = Column(String(512), nullable=True)
    hire_date = Column(Date, nullable=True)
    salary = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
