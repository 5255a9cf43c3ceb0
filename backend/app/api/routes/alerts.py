"""Alerts: feed listing, acknowledgement and on-demand detector runs."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.api.pagination import paginate
from app.core.audit import AuditLog
from app.core.exceptions import BusinessError
from app.models.alert import Alert
from app.models.enums import AlertSeverity, AlertType
from app.models.user import User
from app.schemas.alert import (
    AlertCreate,
    AlertListResponse,
    AlertResponse,
    AlertStats,
    CheckResult,
    MarkAllRead,
    MarkAllReadResult,
)
from app.services import alert_detector

router = APIRouter()


def _get_alert(db: Session, alert_id: int) -> Alert:
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise BusinessError.not_found("Alert")
    return alert


@router.get("", response_model=AlertListResponse)
def list_alerts(
    alert_type: Optional[AlertType] = Query(None, alias="type"),
    severity: Optional[AlertSeverity] = Query(None),
    is_read: Optional[bool] = Query(None, alias="isRead"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first."""
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.type == alert_type.value)
    if severity:
        q = q.filter(Alert.severity == severity.value)
    if is_read is not None:
        q = q.filter(Alert.is_read == is_read)

    alerts, pagination = paginate(q.order_by(Alert.created_at.desc(), Alert.id.desc()), page, limit)
    return AlertListResponse(alerts=alerts, pagination=pagination)


@router.get("/stats", response_model=AlertStats)
def alert_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Unread counts per type and severity; every enum value is present."""
    total = db.query(func.count(Alert.id)).scalar() or 0
    unread = db.query(func.count(Alert.id)).filter(Alert.is_read.is_(False)).scalar() or 0

    by_type = {t.value: 0 for t in AlertType}
    for alert_type, count in (
        db.query(Alert.type, func.count(Alert.id))
        .filter(Alert.is_read.is_(False))
        .group_by(Alert.type)
        .all()
    ):
        by_type[alert_type] = count

    by_severity = {s.value: 0 for s in AlertSeverity}
    for severity, count in (
        db.query(Alert.severity, func.count(Alert.id))
        .filter(Alert.is_read.is_(False))
        .group_by(Alert.severity)
        .all()
    ):
        by_severity[severity] = count

    return AlertStats(total=total, unread=unread, by_type=by_type, by_severity=by_severity)


@router.post("", response_model=AlertResponse, status_code=status.HTTP_201_CREATED)
def create_alert(
    data: AlertCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Manual alert. Never de-duplicated."""
    alert = Alert(
        type=data.type.value,
        title=data.title.strip(),
        message=data.message.strip(),
        severity=data.severity.value,
        is_read=False,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)

    AuditLog.log_alerts_created(f"user:{current_user.id}", [alert.id])
    return alert


@router.post("/check-stock", response_model=CheckResult)
def check_stock(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    created = alert_detector.check_stock(db)
    AuditLog.log_alerts_created(f"check-stock:{current_user.id}", [a.id for a in created])
    return CheckResult(created=len(created), alerts=created)


@router.post("/check-expiry", response_model=CheckResult)
def check_expiry(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    created = alert_detector.check_expiry(db)
    AuditLog.log_alerts_created(f"check-expiry:{current_user.id}", [a.id for a in created])
    return CheckResult(created=len(created), alerts=created)


@router.put("/read-all", response_model=MarkAllReadResult)
def mark_all_read(
    data: Optional[MarkAllRead] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark every unread alert read, optionally narrowed by type and severity."""
    data = data or MarkAllRead()
    q = db.query(Alert).filter(Alert.is_read.is_(False))
    if data.type:
        q = q.filter(Alert.type == data.type.value)
    if data.severity:
        q = q.filter(Alert.severity == data.severity.value)
    updated = q.update({Alert.is_read: True}, synchronize_session=False)
    db.commit()

    AuditLog.log_action("read_all", "alert", None, current_user.id,
                        changes={"updated": updated, **data.model_dump(exclude_none=True, mode="json")})
    return MarkAllReadResult(updated=updated)


@router.put("/{alert_id}/read", response_model=AlertResponse)
def mark_read(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    alert = _get_alert(db, alert_id)
    if not alert.is_read:
        alert.is_read = True
        db.commit()
        db.refresh(alert)
        AuditLog.log_action("read", "alert", alert.id, current_user.id)
    return alert


@router.delete("/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    alert = _get_alert(db, alert_id)
    db.delete(alert)
    db.commit()

    AuditLog.log_action("delete", "alert", alert_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
