"""String enums stored in String columns and validated by the schemas."""
import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    PHARMACIST = "PHARMACIST"
    TECHNICIAN = "TECHNICIAN"
    CASHIER = "CASHIER"


class AlertType(str, enum.Enum):
    STOCK = "STOCK"
    EXPIRY = "EXPIRY"
    SYSTEM = "SYSTEM"
    PRESCRIPTION = "PRESCRIPTION"


class AlertSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.LOW: 0,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.HIGH: 2,
    AlertSeverity.CRITICAL: 3,
}


class PrescriptionStatus(str, enum.Enum):
    PENDING = "PENDING"
    FILLED = "FILLED"
    PARTIAL = "PARTIAL"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"
    INSURANCE = "INSURANCE"
    CREDIT = "CREDIT"
