from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel


class SalesStats(CamelModel):
    today: float
    change: float
    transactions: int
    transaction_change: float


class MedicineDashboardStats(CamelModel):
    total: int
    total_quantity: int
    low_stock: int
    expiring_soon: int


class CustomerDashboardStats(CamelModel):
    total: int
    served_today: int


class PrescriptionDashboardStats(CamelModel):
    pending: int


class DashboardStats(CamelModel):
    sales: SalesStats
    medicines: MedicineDashboardStats
    customers: CustomerDashboardStats
    prescriptions: PrescriptionDashboardStats


class RecentTransaction(CamelModel):
    id: int
    total: float
    payment_method: str
    sale_date: datetime
    customer_name: Optional[str] = None
    prescription_number: Optional[str] = None


class SalesChartPoint(CamelModel):
    date: str
    sales: float
    transactions: int


