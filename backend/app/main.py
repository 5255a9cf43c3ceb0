"""
Pharmacy backend: inventory, customers, prescriptions, sales, staff and alerts.

ARCHITECTURE:
- FastAPI: REST API, bearer JWT auth, role checks
- SQLAlchemy: persistence (SQLite by default, any SQL database via DATABASE_URL)
- Alert scheduler: periodic stock/expiry scan in the background
- Client package (app.client): API client, alert feed, global search

Alerts are de-duplicated per medicine, severity and day, so manual checks
and the scheduler can run side by side.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import alerts, attendance, auth, customers, dashboard, medicines, prescriptions, sales, users
from app.core.config import settings
from app.db.init_db import init_db
from app.services.alert_scheduler import start_alert_scheduler, stop_alert_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    1. Initialize database tables (and the first admin account)
    2. Start the alert scheduler (unless ALERT_SCHEDULER_ENABLED=false)

    Shutdown:
    1. Stop the alert scheduler
    """
    try:
        print("[*] Initializing database...")
        init_db()
        print("[OK] Database initialized")

        if settings.ALERT_SCHEDULER_ENABLED:
            print("[*] Starting alert scheduler...")
            start_alert_scheduler()
            print("[OK] Alert scheduler started")
        else:
            print("[WARN] Alert scheduler disabled")
    except Exception as e:
        logger.exception(f"[ERROR] Startup error: {e}")

    yield

    try:
        if settings.ALERT_SCHEDULER_ENABLED:
            stop_alert_scheduler()
    except Exception as e:
        logger.error(f"[ERROR] Shutdown error: {e}")


app = FastAPI(
    title="Pharmacy Management API",
    description="Inventory, prescriptions, point of sale, staff and stock/expiry alerts.",
    version="1.0.0",
    lifespan=lifespan,
)

# Browser front-end origins come from CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.ENVIRONMENT == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


for module in (auth, users, medicines, customers, prescriptions, sales, alerts, dashboard, attendance):
    name = module.__name__.rsplit(".", 1)[-1]
    app.include_router(module.router, prefix=f"/{name}", tags=[name])


@app.get("/health")
def health():
    return {
        "status": "ok",
        "alert_scheduler": "enabled" if settings.ALERT_SCHEDULER_ENABLED else "disabled",
    }
