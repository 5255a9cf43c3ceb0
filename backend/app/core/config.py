"""Application configuration.

Environment variables override all defaults.
CRITICAL: SECRET_KEY must be set in .env - will fail fast if missing in production.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load backend/.env for local development; real environment variables win
_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pharmacy.db")

    # JWT Security - CRITICAL
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        # Generate with: python -c "import secrets; print(secrets.token_urlsafe(32))"
        if os.getenv("ENVIRONMENT", "development") == "production":
            raise ValueError(
                "CRITICAL: SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value before production.",
            RuntimeWarning
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    # Sessions last a working shift
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(24 * 60)))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:8080,http://127.0.0.1:8080,http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # Alert detection
    ALERT_SCHEDULER_ENABLED: bool = _env_bool("ALERT_SCHEDULER_ENABLED", "true")
    ALERT_SCAN_INTERVAL_SECONDS: int = int(os.getenv("ALERT_SCAN_INTERVAL_SECONDS", "3600"))
    EXPIRY_WINDOW_DAYS: int = int(os.getenv("EXPIRY_WINDOW_DAYS", "30"))
    EXPIRY_URGENT_DAYS: int = int(os.getenv("EXPIRY_URGENT_DAYS", "7"))
    # Fixed threshold used by the medicines list `lowStock` filter
    LOW_STOCK_QUERY_THRESHOLD: int = int(os.getenv("LOW_STOCK_QUERY_THRESHOLD", "10"))

    # Sales
    TAX_RATE: str = os.getenv("TAX_RATE", "0.10")

    # Receipts
    RECEIPT_CURRENCY: str = os.getenv("RECEIPT_CURRENCY", "UGX")
    PHARMACY_NAME: str = os.getenv("PHARMACY_NAME", "GREEN LEAF PHARMACY")
    PHARMACY_TAGLINE: str = os.getenv("PHARMACY_TAGLINE", "Professional Healthcare Services")
    PHARMACY_ADDRESS: str = os.getenv("PHARMACY_ADDRESS", "123 Main Street, Kampala, Uganda")
    PHARMACY_PHONE: str = os.getenv("PHARMACY_PHONE", "+256 700 123 456")
    PHARMACY_EMAIL: str = os.getenv("PHARMACY_EMAIL", "info@greenleaf.com")

    # Client library
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    PHARMACY_SESSION_FILE: str = os.getenv(
        "PHARMACY_SESSION_FILE", str(Path.home() / ".pharmacy" / "session.json")
    )
    CLIENT_TIMEOUT_SECONDS: float = float(os.getenv("CLIENT_TIMEOUT_SECONDS", "10"))

    # Security Features
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"


settings = Settings()
