from app.models.user import User
from app.models.medicine import Medicine
from app.models.customer import Customer
from app.models.prescription import Prescription, PrescriptionItem
from app.models.sale import Sale, SaleItem
from app.models.alert import Alert
from app.models.attendance import Attendance

__all__ = [
    "User", "Medicine", "Customer", "Prescription", "PrescriptionItem",
    "Sale", "SaleItem", "Alert", "Attendance",
]
