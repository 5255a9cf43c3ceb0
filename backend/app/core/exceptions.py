"""
HTTP error factories for route handlers.

Route code raises `BusinessError.<kind>(...)`. Authentication and permission
failures get fixed wording (no hint whether an email exists or which role
was missing); the real reason goes to the log. Business-rule failures
(stock, prescription state, duplicates) carry their message to the client
because the client caused them.
"""
import logging
from typing import Dict, Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

AUTH_FAILED = "Invalid credentials"
FORBIDDEN = "Insufficient permissions"
INTERNAL_ERROR = "An internal error occurred. Please try again later."


def _http(code: int, detail: str, headers: Optional[Dict[str, str]] = None) -> HTTPException:
    return HTTPException(status_code=code, detail=detail, headers=headers)


class BusinessError:
    """Pharmacy-domain HTTP errors."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        404 naming the resource type only, e.g. "Medicine not found".

            medicine = db.query(Medicine).filter(Medicine.id == medicine_id).first()
            if not medicine:
                raise BusinessError.not_found("Medicine")
        """
        if reason:
            logger.warning(f"{resource} lookup failed: {reason}")
        return _http(status.HTTP_404_NOT_FOUND, f"{resource} not found")

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Same 401 for unknown email, wrong password and inactive account."""
        logger.warning(f"Authentication failed: {reason}")
        return _http(status.HTTP_401_UNAUTHORIZED, AUTH_FAILED, {"WWW-Authenticate": "Bearer"})

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        logger.warning(f"Permission denied: {reason}")
        return _http(status.HTTP_403_FORBIDDEN, FORBIDDEN)

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 with the rule that was broken, e.g.
        "Insufficient stock for Amoxil. Available: 2, Required: 5" or
        "Prescription is not pending".
        """
        logger.info(f"Rejected request: {detail}")
        return _http(status.HTTP_400_BAD_REQUEST, detail)

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """409 for duplicates: staff email, prescription number."""
        logger.info(f"Conflict: {detail}")
        return _http(status.HTTP_409_CONFLICT, detail)

    @staticmethod
    def server_error(original_error: Optional[Exception] = None) -> HTTPException:
        """500 with a generic message; the cause is logged with its traceback."""
        if original_error is not None:
            logger.error(f"Unhandled {type(original_error).__name__}: {original_error}", exc_info=True)
        else:
            logger.error("Unhandled server error", exc_info=True)
        return _http(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)
