"""Dashboard: headline stats, recent transactions, daily sales chart."""
from datetime import date, datetime, time, timedelta
from typing import List, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.config import settings
from app.models.customer import Customer
from app.models.enums import PrescriptionStatus
from app.models.medicine import Medicine
from app.models.prescription import Prescription
from app.models.sale import Sale
from app.models.user import User
from app.schemas.dashboard import (
    CustomerDashboardStats,
    DashboardStats,
    MedicineDashboardStats,
    PrescriptionDashboardStats,
    RecentTransaction,
    SalesChartPoint,
    SalesStats,
)

router = APIRouter()

RECENT_TRANSACTIONS = 10
MAX_CHART_DAYS = 90


def _day_bounds(day: date) -> Tuple[datetime, datetime]:
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def _day_totals(db: Session, day: date) -> Tuple[float, int]:
    start, end = _day_bounds(day)
    total, count = db.query(func.sum(Sale.total), func.count(Sale.id)).filter(
        Sale.sale_date >= start, Sale.sale_date <= end
    ).one()
    return float(total or 0), count or 0


def _percent_change(today: float, yesterday: float) -> float:
    """0 when there is nothing to compare against."""
    if not yesterday:
        return 0.0
    return round((today - yesterday) / yesterday * 100, 2)


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # sale_date is stored in UTC
    today = datetime.utcnow().date()
    today_total, today_count = _day_totals(db, today)
    yesterday_total, yesterday_count = _day_totals(db, today - timedelta(days=1))

    medicine_count, quantity = db.query(func.count(Medicine.id), func.sum(Medicine.quantity)).one()
    low_stock = db.query(func.count(Medicine.id)).filter(
        or_(Medicine.quantity == 0, Medicine.quantity <= Medicine.min_stock_level)
    ).scalar()
    expiring_soon = db.query(func.count(Medicine.id)).filter(
        Medicine.expiry_date <= date.today() + timedelta(days=settings.EXPIRY_WINDOW_DAYS)
    ).scalar()

    start, end = _day_bounds(today)
    served_today = db.query(func.count(func.distinct(Sale.customer_id))).filter(
        Sale.sale_date >= start, Sale.sale_date <= end, Sale.customer_id.isnot(None)
    ).scalar()

    pending = db.query(func.count(Prescription.id)).filter(
        Prescription.status == PrescriptionStatus.PENDING.value
    ).scalar()

    return DashboardStats(
        sales=SalesStats(
            today=today_total,
            change=_percent_change(today_total, yesterday_total),
            transactions=today_count,
            transaction_change=_percent_change(today_count, yesterday_count),
        ),
        medicines=MedicineDashboardStats(
            total=medicine_count or 0,
            total_quantity=quantity or 0,
            low_stock=low_stock or 0,
            expiring_soon=expiring_soon or 0,
        ),
        customers=CustomerDashboardStats(
            total=db.query(func.count(Customer.id)).scalar() or 0,
            served_today=served_today or 0,
        ),
        prescriptions=PrescriptionDashboardStats(pending=pending or 0),
    )


@router.get("/recent-transactions", response_model=List[RecentTransaction])
def recent_transactions(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    sales = (
        db.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(RECENT_TRANSACTIONS)
        .all()
    )
    return [
        RecentTransaction(
            id=sale.id,
            total=float(sale.total),
            payment_method=sale.payment_method,
            sale_date=sale.sale_date,
            customer_name=sale.customer.name if sale.customer else None,
            prescription_number=sale.prescription.prescription_number if sale.prescription else None,
        )
        for sale in sales
    ]


@router.get("/sales-chart", response_model=List[SalesChartPoint])
def sales_chart(
    days: int = Query(7, ge=1, le=MAX_CHART_DAYS),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """One point per day, oldest first, ending today. Days without sales are zero."""
    today = datetime.utcnow().date()
    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        total, count = _day_totals(db, day)
        points.append(SalesChartPoint(date=day.isoformat(), sales=total, transactions=count))
    return points
