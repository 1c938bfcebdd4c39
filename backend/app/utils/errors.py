from typing import Dict
from fastapi import HTTPException, status
import logging

from ..services.pricing.errors import PricingError, SnapshotError

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def pricing_error_response(exc: PricingError) -> HTTPException:
    """Map an engine error onto the standard error payload.

    Snapshot problems are the caller's data (422); anything else coming out
    of the engine is a server fault (500).
    """
    if isinstance(exc, SnapshotError):
        return error_response(exc.message, exc.field_errors)
    return error_response(
        "Order totals could not be reconciled",
        {"pricing": str(exc)},
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
