"""Per-service totals and the cart subtotal."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .catalog import CatalogItem, CatalogResolver, normalize_price, service_minimum_hours
from .selection_keys import ServiceRoleRef, duration_value, iter_quantities, quantity_value
from .staffing import StaffDerivation, clamp_hours, derive_staffing, fallback_duration
from .types import CENT, ZERO, ServiceSelection, normalize_service_type, read_field, to_decimal

logger = logging.getLogger(__name__)

# Services priced only from their selected items; the declared base price is
# ignored for these.
ITEMIZED_TYPES = frozenset({"catering", "staff", "party-rental"})


def requires_item_selection(service_type: str) -> bool:
    return normalize_service_type(service_type) in ITEMIZED_TYPES


@dataclass(frozen=True)
class LineItem:
    key: str
    label: str
    quantity: int
    unit_price: Decimal
    amount: Decimal
    hours: Optional[Decimal] = None
    additional_charge: Decimal = Decimal("0")


@dataclass(frozen=True)
class ServiceLineTotal:
    service_id: str
    total: Decimal
    items: tuple[LineItem, ...] = ()
    staffing: Optional[StaffDerivation] = None


@dataclass(frozen=True)
class LineItemTotals:
    subtotal: Decimal
    service_totals: Dict[str, Decimal]
    lines: tuple[ServiceLineTotal, ...] = ()


def _q(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _role_hours(
    service: ServiceSelection,
    selections: Mapping[str, int],
    key: str,
    selector: Any,
    item: CatalogItem,
) -> Decimal:
    minimum = item.minimum_hours or service_minimum_hours(service)
    hours = duration_value(selections, key)
    if hours is None and isinstance(selector, ServiceRoleRef):
        hours = duration_value(selections, selector.role_id)
    if hours is None:
        hours = fallback_duration(service, selections, minimum)
    return clamp_hours(hours, minimum)


def _flat_base(service: ServiceSelection) -> tuple[Decimal, LineItem]:
    unit = normalize_price(service.price)
    qty = service.quantity if service.quantity and service.quantity > 0 else 1
    amount = unit * qty
    hours = to_decimal(service.duration)
    if hours > 1:
        amount *= hours
    line = LineItem(
        key=service.id,
        label=service.name or service.id,
        quantity=qty,
        unit_price=unit,
        hours=hours if hours > 1 else None,
        amount=_q(amount),
    )
    return amount, line


def _combo_selections_total(service: ServiceSelection) -> tuple[Decimal, List[LineItem]]:
    total = Decimal("0")
    lines = []
    for combo in service.combo_selections or ():
        price = normalize_price(read_field(combo, "totalPrice", "total_price"))
        if price <= 0:
            continue
        total += price
        lines.append(
            LineItem(
                key=str(read_field(combo, "comboId", "combo_id", "id") or "combo"),
                label=str(read_field(combo, "comboName", "combo_name", "name") or "Combo"),
                quantity=1,
                unit_price=price,
                amount=_q(price),
            )
        )
    return total, lines


def total_service(
    service: ServiceSelection,
    selections: Mapping[str, int],
    service_ids: Sequence[str] = (),
) -> ServiceLineTotal:
    """Price one service line from its selections."""
    preset = normalize_price(service.total_price)
    if preset > 0:
        label = service.name or service.id
        return ServiceLineTotal(
            service_id=service.id,
            total=_q(preset),
            items=(LineItem(key=service.id, label=label, quantity=1, unit_price=preset, amount=_q(preset)),),
        )

    kind = service.kind
    is_staff = kind == "staff"
    resolver = CatalogResolver.for_service(service)
    running = Decimal("0")
    items: List[LineItem] = []

    if not requires_item_selection(kind):
        base, line = _flat_base(service)
        running += base
        items.append(line)

    ids = tuple(service_ids) or (service.id,)
    role_lines = 0
    for key, selector, qty in iter_quantities(selections, ids):
        item = resolver.resolve(selector)
        if item is None:
            continue
        eff_qty = max(qty, item.min_quantity)
        if is_staff:
            hours = _role_hours(service, selections, key, selector, item)
            amount = item.unit_price * eff_qty * hours
        else:
            # Combo choices carry their upcharge on top of the item price.
            hours = None
            amount = (item.unit_price + item.additional_charge) * eff_qty
        running += amount
        role_lines += 1
        items.append(
            LineItem(
                key=key,
                label=item.name or item.id,
                quantity=eff_qty,
                unit_price=item.unit_price,
                hours=hours,
                amount=_q(amount),
                additional_charge=item.additional_charge,
            )
        )

    staffing = None
    if is_staff:
        staffing = derive_staffing(service, selections)
        aggregate = quantity_value(selections.get(service.id))
        if role_lines == 0 and aggregate > 0:
            # No role catalog hit: bill the service's own hourly rate.
            unit = normalize_price(service.price)
            amount = unit * staffing.staff_count * staffing.effective_duration
            running += amount
            items.append(
                LineItem(
                    key=service.id,
                    label=service.name or service.id,
                    quantity=staffing.staff_count,
                    unit_price=unit,
                    hours=staffing.effective_duration,
                    amount=_q(amount),
                )
            )

    combo_total, combo_lines = _combo_selections_total(service)
    running += combo_total
    items.extend(combo_lines)

    total = _q(running)
    logger.debug(
        "Service total",
        extra={"service_id": service.id, "service_type": kind, "total": str(total), "lines": len(items)},
    )
    return ServiceLineTotal(service_id=service.id, total=total, items=tuple(items), staffing=staffing)


def totalize(services: Sequence[ServiceSelection], selections: Mapping[str, int]) -> LineItemTotals:
    """Return the subtotal and per-service totals for a cart."""
    ids = [s.id for s in services if s.id]
    service_totals: Dict[str, Decimal] = {}
    lines: List[ServiceLineTotal] = []
    subtotal = ZERO
    for service in services:
        line = total_service(service, selections, ids)
        lines.append(line)
        service_totals[service.id] = service_totals.get(service.id, ZERO) + line.total
        subtotal += line.total
    return LineItemTotals(subtotal=_q(subtotal), service_totals=service_totals, lines=tuple(lines))
