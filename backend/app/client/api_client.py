"""
HTTP client for the pharmacy REST API.

- One request per call, bearer token from the session store when present
- Non-2xx responses raise ApiError (no retry, no backoff)
- Query options use Python names and are sent with their wire names;
  falsy options are dropped, booleans go as "true"/"false"

Usage:
    api = ApiClient()
    api.login("admin@pharmacy.local", "secret")
    low = api.medicines.list(low_stock=True, limit=10)
    api.alerts.mark_read(alert_id)
"""
import enum
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

import requests

from app.core.config import settings
from app.client.session_store import SessionStore

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, status_text: str = "", detail: Any = None):
        self.status_code = status_code
        self.status_text = status_text
        self.detail = detail
        super().__init__(f"API Error: {status_code} {status_text}".rstrip())


def _wire_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def build_params(options: Dict[str, Any], keep_false: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Map {wire_name: value} to query params.

    Falsy values are dropped except for names in `keep_false`, which are
    dropped only when None (so isRead=false still filters).
    """
    keep_false = set(keep_false)
    params = {}
    for name, value in options.items():
        if value is None:
            continue
        if not value and name not in keep_false:
            continue
        params[name] = _wire_value(value)
    return params


class _Resource:
    def __init__(self, client: "ApiClient"):
        self.client = client


class MedicinesApi(_Resource):
    def list(self, search=None, category=None, low_stock=False, expiring_soon=False, page=None, limit=None):
        return self.client.get("/medicines", params=build_params({
            "search": search, "category": category,
            "lowStock": low_stock, "expiringSoon": expiring_soon,
            "page": page, "limit": limit,
        }))

    def get(self, medicine_id):
        return self.client.get(f"/medicines/{medicine_id}")

    def create(self, data: Dict[str, Any]):
        return self.client.post("/medicines", data)

    def update(self, medicine_id, data: Dict[str, Any]):
        return self.client.put(f"/medicines/{medicine_id}", data)

    def delete(self, medicine_id):
        return self.client.delete(f"/medicines/{medicine_id}")

    def categories(self):
        return self.client.get("/medicines/meta/categories")


class CustomersApi(_Resource):
    def list(self, search=None, page=None, limit=None):
        return self.client.get("/customers", params=build_params({
            "search": search, "page": page, "limit": limit,
        }))

    def get(self, customer_id):
        return self.client.get(f"/customers/{customer_id}")

    def create(self, data: Dict[str, Any]):
        return self.client.post("/customers", data)

    def update(self, customer_id, data: Dict[str, Any]):
        return self.client.put(f"/customers/{customer_id}", data)

    def delete(self, customer_id):
        return self.client.delete(f"/customers/{customer_id}")


class PrescriptionsApi(_Resource):
    def list(self, status=None, search=None, page=None, limit=None):
        return self.client.get("/prescriptions", params=build_params({
            "status": status, "search": search, "page": page, "limit": limit,
        }))

    def get(self, prescription_id):
        return self.client.get(f"/prescriptions/{prescription_id}")

    def create(self, data: Dict[str, Any]):
        return self.client.post("/prescriptions", data)

    def update(self, prescription_id, data: Dict[str, Any]):
        return self.client.put(f"/prescriptions/{prescription_id}", data)

    def fill(self, prescription_id, payment_method=None, discount=None):
        body = {}
        if payment_method:
            body["paymentMethod"] = _wire_value(payment_method)
        if discount:
            body["discount"] = discount
        return self.client.post(f"/prescriptions/{prescription_id}/fill", body)


class SalesApi(_Resource):
    def list(self, start_date=None, end_date=None, payment_method=None, customer_id=None, page=None, limit=None):
        return self.client.get("/sales", params=build_params({
            "startDate": start_date, "endDate": end_date,
            "paymentMethod": payment_method, "customerId": customer_id,
            "page": page, "limit": limit,
        }))

    def get(self, sale_id):
        return self.client.get(f"/sales/{sale_id}")

    def create(self, data: Dict[str, Any]):
        return self.client.post("/sales", data)

    def stats(self, start_date=None, end_date=None):
        return self.client.get("/sales/stats/summary", params=build_params({
            "startDate": start_date, "endDate": end_date,
        }))

    def receipt(self, sale_id):
        return self.client.get(f"/sales/{sale_id}/receipt")

    def receipt_pdf(self, sale_id) -> bytes:
        return self.client.request("GET", f"/sales/{sale_id}/receipt.pdf", raw=True)


class AlertsApi(_Resource):
    def list(self, type=None, severity=None, is_read=None, page=None, limit=None):
        return self.client.get("/alerts", params=build_params({
            "type": type, "severity": severity, "isRead": is_read,
            "page": page, "limit": limit,
        }, keep_false=("isRead",)))

    def stats(self):
        return self.client.get("/alerts/stats")

    def create(self, data: Dict[str, Any]):
        return self.client.post("/alerts", data)

    def mark_read(self, alert_id):
        return self.client.put(f"/alerts/{alert_id}/read", {})

    def mark_all_read(self, type=None, severity=None):
        return self.client.put("/alerts/read-all", build_params({"type": type, "severity": severity}))

    def delete(self, alert_id):
        return self.client.delete(f"/alerts/{alert_id}")

    def check_stock(self):
        return self.client.post("/alerts/check-stock", {})

    def check_expiry(self):
        return self.client.post("/alerts/check-expiry", {})


class DashboardApi(_Resource):
    def stats(self):
        return self.client.get("/dashboard/stats")

    def recent_transactions(self):
        return self.client.get("/dashboard/recent-transactions")

    def sales_chart(self, days=None):
        return self.client.get("/dashboard/sales-chart", params=build_params({"days": days}))


class AttendanceApi(_Resource):
    def list(self, start_date=None, end_date=None, employee_id=None):
        return self.client.get("/attendance", params=build_params({
            "startDate": start_date, "endDate": end_date, "employeeId": employee_id,
        }))

    def clock_in(self, notes=None):
        return self.client.post("/attendance/clock-in", build_params({"notes": notes}))

    def clock_out(self, notes=None, break_minutes=None):
        return self.client.post("/attendance/clock-out", build_params({
            "notes": notes, "breakMinutes": break_minutes,
        }))


class UsersApi(_Resource):
    def list(self, role=None, active=None):
        return self.client.get("/users", params=build_params(
            {"role": role, "active": active}, keep_false=("active",)
        ))

    def get(self, user_id):
        return self.client.get(f"/users/{user_id}")

    def update(self, user_id, data: Dict[str, Any]):
        return self.client.put(f"/users/{user_id}", data)


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        store: Optional[SessionStore] = None,
        http: Any = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.store = store if store is not None else SessionStore()
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS

        self.medicines = MedicinesApi(self)
        self.customers = CustomersApi(self)
        self.prescriptions = PrescriptionsApi(self)
        self.sales = SalesApi(self)
        self.alerts = AlertsApi(self)
        self.dashboard = DashboardApi(self)
        self.attendance = AttendanceApi(self)
        self.users = UsersApi(self)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        token = self.store.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        raw: bool = False,
    ) -> Any:
        """Send one request. Returns parsed JSON, None for 204, bytes when `raw`."""
        response = self.http.request(
            method,
            f"{self.base_url}{path}",
            params=params or None,
            json=json,
            headers=self._headers(),
            timeout=self.timeout,
        )

        if not 200 <= response.status_code < 300:
            try:
                detail = response.json().get("detail")
            except (ValueError, AttributeError):
                detail = None
            logger.warning(f"[ApiClient] {method} {path} -> {response.status_code} {detail or ''}".rstrip())
            raise ApiError(response.status_code, response.reason or "", detail)

        if raw:
            return response.content
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, data: Any = None) -> Any:
        return self.request("POST", path, json=data if data is not None else {})

    def put(self, path: str, data: Any = None) -> Any:
        return self.request("PUT", path, json=data if data is not None else {})

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    # Session

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self.request("POST", "/auth/login", json={"email": email, "password": password})
        if data and data.get("token"):
            self.store.save_login(data["token"], data.get("user"))
        return data

    def logout(self) -> None:
        self.store.clear()

    def current_user(self) -> Optional[Dict[str, Any]]:
        return self.store.user

    def verify(self) -> Dict[str, Any]:
        return self.post("/auth/verify")
