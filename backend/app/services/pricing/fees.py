from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP

from .types import CENT, FEE_TYPE_FIXED, FEE_TYPE_HYBRID, ZERO, FeeSettings

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")


def compute_service_fee(subtotal: Decimal, fee_settings: FeeSettings) -> Decimal:
    """Return the platform service fee for ``subtotal``.

    The fee is charged on the service subtotal only. A waived fee is zero
    but still reported as a line by callers.
    """
    if fee_settings.is_service_fee_waived:
        return ZERO

    pct_fee = subtotal * fee_settings.service_fee_percentage / _HUNDRED
    fee_type = (fee_settings.service_fee_type or "").lower()
    if fee_type == FEE_TYPE_FIXED:
        fee = fee_settings.service_fee_fixed
    elif fee_type == FEE_TYPE_HYBRID:
        fee = pct_fee + fee_settings.service_fee_fixed
    else:
        fee = pct_fee

    fee = fee.quantize(CENT, rounding=ROUND_HALF_UP)
    logger.debug(
        "Service fee computed",
        extra={"fee_type": fee_type, "subtotal": str(subtotal), "service_fee": str(fee)},
    )
    return fee if fee > 0 else ZERO
