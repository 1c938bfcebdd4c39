"""Delivery fees from vendor delivery ranges.

Distances are supplied by the caller (miles, per service when known). No
geocoding happens here; without a distance the first configured range is
used.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .catalog import normalize_price
from .types import (
    CENT,
    ZERO,
    DeliveryDetails,
    MinimumWarning,
    ServiceSelection,
    read_field,
    to_decimal,
)

logger = logging.getLogger(__name__)

MAX_DELIVERY_MILES = Decimal("100")

_DASHES = re.compile("[–—−]")
_UNITS = re.compile(r"\bmi(?:les)?\b")
_RANGE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:-\s*(\d+(?:\.\d+)?))?")


@dataclass(frozen=True)
class DeliveryQuote:
    fee: Decimal
    range: str
    eligible: bool
    reason: Optional[str] = None


def parse_distance_range(text: Optional[str]) -> tuple[Decimal, Decimal]:
    """Parse ``"0-10 miles"`` / ``"5 miles"`` into ``(min, max)``; max is capped."""
    if not text:
        return Decimal("0"), Decimal("0")
    cleaned = _DASHES.sub("-", str(text).lower())
    cleaned = _UNITS.sub("", cleaned)
    cleaned = re.sub(r"[^\d.\-\s]", "", cleaned).strip()
    match = _RANGE.search(cleaned)
    if not match:
        return Decimal("0"), Decimal("0")
    low = Decimal(match.group(1))
    high = Decimal(match.group(2)) if match.group(2) else low
    return low, min(high, MAX_DELIVERY_MILES)


def delivery_options(service: ServiceSelection) -> Optional[Mapping[str, Any]]:
    details = service.service_details or {}
    opts = read_field(details, "deliveryOptions")
    if opts is None:
        opts = read_field(read_field(details, "catering"), "deliveryOptions")
    if opts is None:
        opts = read_field(details, "delivery_options")
    return opts if isinstance(opts, Mapping) else None


def quote_delivery(options: Mapping[str, Any], distance_miles: Optional[Decimal] = None) -> DeliveryQuote:
    """Pick the delivery range and fee for one service."""
    if not options or not options.get("delivery"):
        return DeliveryQuote(ZERO, "N/A", False, "Delivery not offered by this service")

    ranges = [r for r in (options.get("deliveryRanges") or []) if isinstance(r, Mapping)]
    if not ranges:
        return DeliveryQuote(ZERO, "No range specified", True)

    first = ranges[0]
    if distance_miles is None or distance_miles <= 0:
        return DeliveryQuote(
            normalize_price(first.get("fee")),
            str(first.get("range") or ""),
            True,
            "Distance calculation unavailable - using first delivery range",
        )

    for rng in ranges:
        low, high = parse_distance_range(rng.get("range"))
        if low <= distance_miles <= high:
            return DeliveryQuote(normalize_price(rng.get("fee")), str(rng.get("range") or ""), True)

    furthest = max(parse_distance_range(r.get("range"))[1] for r in ranges)
    if distance_miles > furthest:
        return DeliveryQuote(
            ZERO,
            f"Beyond {furthest} miles",
            False,
            f"Delivery not available beyond {furthest} miles",
        )
    return DeliveryQuote(
        normalize_price(first.get("fee")),
        str(first.get("range") or ""),
        True,
        "Using default delivery range",
    )


def compute_delivery(
    services: Sequence[ServiceSelection],
    service_totals: Mapping[str, Decimal],
    delivery_address: Optional[str],
    distance_miles: Any = None,
    distances_by_service: Optional[Mapping[str, Any]] = None,
) -> tuple[Decimal, DeliveryDetails]:
    """Sum delivery fees across every service that delivers to the address."""
    details = DeliveryDetails(eligible=False, range="N/A", reason="No delivery services selected")
    if not delivery_address or not services:
        return ZERO, details

    total = Decimal("0")
    any_delivery = False
    all_eligible = True
    noted_range: Optional[str] = None
    noted_reason: Optional[str] = None
    warnings: List[MinimumWarning] = []
    by_service: Dict[str, Any] = dict(distances_by_service or {})

    for service in services:
        options = delivery_options(service)
        if not options or not options.get("delivery"):
            continue
        any_delivery = True
        raw_distance = by_service.get(service.id, distance_miles)
        distance = to_decimal(raw_distance) if raw_distance is not None else None
        quote = quote_delivery(options, distance)
        noted_range = noted_range or quote.range

        if quote.eligible:
            total += quote.fee
            minimum = normalize_price(options.get("deliveryMinimum"))
            current = service_totals.get(service.id, ZERO)
            if minimum > 0 and current < minimum:
                warnings.append(
                    MinimumWarning(
                        vendor=service.vendor_name or service.name or "Unknown Vendor",
                        required=minimum,
                        current=current,
                    )
                )
        else:
            all_eligible = False
            noted_reason = quote.reason or noted_reason

    if any_delivery:
        details = DeliveryDetails(
            eligible=all_eligible,
            range=noted_range or "varies",
            reason=None if all_eligible else (noted_reason or "Delivery not available to this location"),
            minimum_warnings=tuple(warnings),
        )
    fee = total.quantize(CENT, rounding=ROUND_HALF_UP)
    logger.debug(
        "Delivery fee computed",
        extra={"delivery_fee": str(fee), "eligible": details.eligible, "warnings": len(warnings)},
    )
    return fee, details
