"""Sales tax resolution.

Priority, highest first:

1. the persisted snapshot's tax and rate (never recomputed);
2. an explicit override, used when a draft is tied to an already-quoted tax;
3. the rate derived from the billing or event address.

Exempt orders report the rate that would have applied but charge nothing.
Without an address, override or snapshot the tax is *pending*: shown as 0
and flagged, which is not the same as exempt.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from .types import (
    CENT,
    ZERO,
    PricingSnapshot,
    TaxJurisdiction,
    TaxOverride,
    TaxResolution,
    money,
    read_field,
    to_decimal,
)

logger = logging.getLogger(__name__)

JurisdictionResolver = Callable[[str], Optional[TaxJurisdiction]]

SOURCE_SNAPSHOT = "snapshot"
SOURCE_OVERRIDE = "override"
SOURCE_LOCATION = "location"
SOURCE_PENDING = "pending"


def override_rate(override: Optional[TaxOverride]) -> Optional[Decimal]:
    """Return ``override.rate`` or the first breakdown row's ``tax_rate``."""
    if override is None:
        return None
    if override.rate is not None:
        return to_decimal(override.rate)
    if override.breakdown:
        raw = read_field(override.breakdown[0], "tax_rate")
        if raw is not None:
            return to_decimal(raw)
    return None


def _apply_rate(base: Decimal, rate: Decimal) -> Decimal:
    if base <= 0 or rate <= 0:
        return ZERO
    return (base * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def snapshot_tax(snapshot: PricingSnapshot) -> TaxResolution:
    return TaxResolution(
        amount=snapshot.tax,
        rate=snapshot.tax_rate,
        source=SOURCE_SNAPSHOT,
        description=f"Tax ({(snapshot.tax_rate * 100).normalize():f}%)",
    )


def resolve_tax(
    taxable_base: Decimal,
    *,
    snapshot: Optional[PricingSnapshot] = None,
    override: Optional[TaxOverride] = None,
    address: Optional[str] = None,
    is_tax_exempt: bool = False,
    jurisdiction_resolver: Optional[JurisdictionResolver] = None,
) -> TaxResolution:
    """Resolve the tax amount and rate for ``taxable_base``.

    ``taxable_base`` is subtotal + service fee + delivery fee + taxable
    adjustments; the caller assembles it.
    """
    if snapshot is not None:
        resolution = snapshot_tax(snapshot)
    else:
        resolution = _resolve_live(taxable_base, override, address, jurisdiction_resolver)

    if is_tax_exempt:
        resolution = TaxResolution(
            amount=ZERO,
            rate=resolution.rate,
            source=resolution.source,
            exempt=True,
            pending=False,
            jurisdiction=resolution.jurisdiction,
            description="Tax Exempt - No tax applicable",
        )

    logger.debug(
        "Tax resolved",
        extra={
            "source": resolution.source,
            "rate": str(resolution.rate),
            "amount": str(resolution.amount),
            "exempt": resolution.exempt,
            "pending": resolution.pending,
        },
    )
    return resolution


def _resolve_live(
    base: Decimal,
    override: Optional[TaxOverride],
    address: Optional[str],
    jurisdiction_resolver: Optional[JurisdictionResolver],
) -> TaxResolution:
    located: Optional[TaxJurisdiction] = None
    if address and address.strip() and jurisdiction_resolver is not None:
        located = jurisdiction_resolver(address)

    rate = override_rate(override)
    if override is not None and (override.amount is not None or rate is not None):
        if rate is None:
            rate = located.rate if located else ZERO
        amount = money(override.amount) if override.amount is not None else _apply_rate(base, rate)
        return TaxResolution(
            amount=amount,
            rate=rate,
            source=SOURCE_OVERRIDE,
            jurisdiction=override.jurisdiction or (located.jurisdiction if located else None),
            description=f"Tax ({(rate * 100).normalize():f}%)",
        )

    if address and address.strip():
        if located is None:
            logger.warning("No tax jurisdiction found for address %r", address)
            return TaxResolution(amount=ZERO, rate=ZERO, source=SOURCE_LOCATION, description="No tax")
        return TaxResolution(
            amount=_apply_rate(base, located.rate),
            rate=located.rate,
            source=SOURCE_LOCATION,
            jurisdiction=located.jurisdiction,
            description=located.description,
        )

    return TaxResolution(
        amount=ZERO,
        rate=ZERO,
        source=SOURCE_PENDING,
        pending=True,
        description="Tax calculated once a billing address is provided",
    )
