"""Sales: checkout, history, summary stats and receipts."""
from dataclasses import asdict
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.api.pagination import paginate
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.enums import PaymentMethod
from app.models.medicine import Medicine
from app.models.sale import Sale, SaleItem
from app.models.user import User
from app.schemas.medicine import MedicineBrief
from app.schemas.receipt import ReceiptResponse
from app.schemas.sale import (
    PaymentMethodSummary,
    SaleCreate,
    SaleListResponse,
    SaleResponse,
    SalesSummary,
    TopMedicine,
)
from app.services import receipt_service, sale_service

router = APIRouter()

TOP_MEDICINES = 10


def _get_sale(db: Session, sale_id: int) -> Sale:
    sale = sale_service.load_sale(db, sale_id)
    if not sale:
        raise BusinessError.not_found("Sale")
    return sale


def _date_range(query, start_date: Optional[date], end_date: Optional[date]):
    """Inclusive whole-day range on sale_date. Either bound may be omitted."""
    if start_date:
        query = query.filter(Sale.sale_date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Sale.sale_date <= datetime.combine(end_date, time.max))
    return query


@router.get("", response_model=SaleListResponse)
def list_sales(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    payment_method: Optional[PaymentMethod] = Query(None, alias="paymentMethod"),
    customer_id: Optional[int] = Query(None, alias="customerId"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = _date_range(db.query(Sale), start_date, end_date)
    if payment_method:
        q = q.filter(Sale.payment_method == payment_method.value)
    if customer_id:
        q = q.filter(Sale.customer_id == customer_id)

    sales, pagination = paginate(q.order_by(Sale.sale_date.desc(), Sale.id.desc()), page, limit)
    return SaleListResponse(sales=sales, pagination=pagination)


@router.get("/stats/summary", response_model=SalesSummary)
def sales_summary(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Totals, payment-method split and top sellers by revenue."""
    base = _date_range(db.query(Sale), start_date, end_date)
    sale_ids = base.with_entities(Sale.id).subquery()

    total, tax, discount, count, average = _date_range(
        db.query(
            func.sum(Sale.total), func.sum(Sale.tax), func.sum(Sale.discount),
            func.count(Sale.id), func.avg(Sale.total),
        ),
        start_date, end_date,
    ).one()

    by_method = _date_range(
        db.query(Sale.payment_method, func.sum(Sale.total), func.count(Sale.id)),
        start_date, end_date,
    ).group_by(Sale.payment_method).all()

    revenue = func.sum(SaleItem.subtotal)
    top = (
        db.query(SaleItem.medicine_id, func.sum(SaleItem.quantity), revenue)
        .filter(SaleItem.sale_id.in_(db.query(sale_ids.c.id)))
        .group_by(SaleItem.medicine_id)
        .order_by(revenue.desc())
        .limit(TOP_MEDICINES)
        .all()
    )
    medicines = {
        m.id: m for m in db.query(Medicine).filter(Medicine.id.in_([row[0] for row in top])).all()
    } if top else {}

    return SalesSummary(
        total_sales=float(total or 0),
        total_transactions=count or 0,
        average_sale=float(average or 0),
        total_tax=float(tax or 0),
        total_discount=float(discount or 0),
        sales_by_payment_method=[
            PaymentMethodSummary(payment_method=method, total=float(amount or 0), count=n)
            for method, amount, n in by_method
        ],
        top_medicines=[
            TopMedicine(
                medicine_id=medicine_id,
                quantity=int(quantity or 0),
                subtotal=float(subtotal or 0),
                medicine=MedicineBrief.model_validate(medicines[medicine_id]) if medicine_id in medicines else None,
            )
            for medicine_id, quantity, subtotal in top
        ],
    )


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_sale(db, sale_id)


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Checkout. 400 on unknown medicine or insufficient stock; nothing is written then."""
    try:
        sale = sale_service.create_sale(db, data, current_user)
    except ValueError as e:
        raise BusinessError.bad_request(str(e))

    AuditLog.log_action("create", "sale", sale.id, current_user.id,
                        changes={"total": str(sale.total), "items": len(sale.items)})
    return sale


@router.get("/{sale_id}/receipt", response_model=ReceiptResponse)
def get_receipt(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Receipt data plus a fixed-width text rendering for thermal printers."""
    receipt = receipt_service.build_receipt(_get_sale(db, sale_id))
    return ReceiptResponse.model_validate({
        **asdict(receipt),
        "text": receipt_service.render_receipt_text(receipt),
    })


@router.get("/{sale_id}/receipt.pdf")
def get_receipt_pdf(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    receipt = receipt_service.build_receipt(_get_sale(db, sale_id))
    buffer = receipt_service.generate_receipt_pdf(receipt)
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=receipt_{receipt.number}.pdf"},
    )
