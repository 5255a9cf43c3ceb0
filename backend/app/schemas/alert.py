from datetime import datetime
from typing import Dict, List, Optional
from pydantic import Field

from app.models.enums import AlertSeverity, AlertType
from app.schemas.common import CamelModel, Pagination


class AlertCreate(CamelModel):
    type: AlertType
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    severity: AlertSeverity


class AlertResponse(CamelModel):
    id: int
    type: AlertType
    title: str
    message: str
    severity: AlertSeverity
    is_read: bool
    created_at: datetime
    medicine_id: Optional[int] = None


class AlertListResponse(CamelModel):
    alerts: List[AlertResponse]
    pagination: Pagination


class AlertStats(CamelModel):
    total: int
    unread: int
    by_type: Dict[str, int]
    by_severity: Dict[str, int]


class MarkAllRead(CamelModel):
    type: Optional[AlertType] = None
    severity: Optional[AlertSeverity] = None


class MarkAllReadResult(CamelModel):
    updated: int


class CheckResult(CamelModel):
    created: int
    alerts: List[AlertResponse]
