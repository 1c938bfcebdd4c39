"""Staff count and billable hours from the flat selection map.

Staff are priced per role, per hour. The cart stores them as
``{serviceId}_{roleId}`` quantities with optional ``_duration`` siblings, so
the grouping has to be rebuilt here from key conventions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .catalog import CatalogResolver, service_minimum_hours
from .selection_keys import (
    ServiceRoleRef,
    duration_value,
    iter_quantities,
    quantity_value,
)
from .types import ServiceSelection, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaffDerivation:
    staff_count: int
    effective_duration: Decimal
    role_keys: tuple[str, ...]
    minimum_hours: Optional[Decimal] = None


def role_ids(service: ServiceSelection) -> set[str]:
    resolver = CatalogResolver.for_service(service)
    ids = set()
    for item in resolver.items:
        ident = item.get("id") if item.get("id") is not None else item.get("itemId")
        if ident is not None:
            ids.add(str(ident))
    return ids


def staff_role_keys(service: ServiceSelection, selections: Mapping[str, int]) -> list[str]:
    """Return the selection keys that belong to this staff service, in map order."""
    valid = role_ids(service)
    keys = []
    for key, selector, _qty in iter_quantities(selections, (service.id,)):
        if isinstance(selector, ServiceRoleRef) and selector.service_id == service.id:
            keys.append(key)
        elif key in valid:
            keys.append(key)
    return keys


def fallback_duration(
    service: ServiceSelection,
    selections: Mapping[str, int],
    minimum_hours: Optional[Decimal],
) -> Decimal:
    """Service-level hours: ``{serviceId}_duration``, ``duration``, minimum, 1."""
    hours = duration_value(selections, service.id)
    if hours is None:
        declared = to_decimal(service.duration)
        hours = declared if declared > 0 else None
    if hours is None:
        hours = minimum_hours
    return hours if hours is not None else Decimal("1")


def clamp_hours(hours: Decimal, minimum_hours: Optional[Decimal]) -> Decimal:
    if minimum_hours is not None and hours < minimum_hours:
        return minimum_hours
    return hours


def derive_staffing(service: ServiceSelection, selections: Mapping[str, int]) -> StaffDerivation:
    """Reconstruct staff count and effective duration for a staff service.

    The count sums every role quantity of this service; the duration is the
    longest role duration, since the booking covers the longest shift.
    """
    minimum = service_minimum_hours(service)
    keys = staff_role_keys(service, selections)

    if keys:
        count = sum(quantity_value(selections[k]) for k in keys)
    else:
        count = quantity_value(selections.get(service.id))
        if count <= 0:
            count = service.quantity if service.quantity and service.quantity > 0 else 1

    durations = [h for h in (duration_value(selections, k) for k in keys) if h is not None]
    if durations:
        hours = max(durations)
    else:
        hours = fallback_duration(service, selections, minimum)
    hours = clamp_hours(hours, minimum)

    logger.debug(
        "Staff derivation",
        extra={
            "service_id": service.id,
            "role_keys": keys,
            "staff_count": count,
            "effective_duration": str(hours),
        },
    )
    return StaffDerivation(
        staff_count=count,
        effective_duration=hours,
        role_keys=tuple(keys),
        minimum_hours=minimum,
    )
