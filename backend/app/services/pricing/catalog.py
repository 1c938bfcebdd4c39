"""Catalog lookup for a single service.

Vendors have saved ``service_details`` in several shapes over time, so item
lists are read from every known location. A selector that cannot be resolved
returns ``None`` and prices at zero; a stale item must never break checkout.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from .selection_keys import (
    CatalogItemRef,
    CatalogSelector,
    ComboItemRef,
    ServiceRoleRef,
)
from .types import ServiceSelection, read_field, to_decimal

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def normalize_price(price: Any) -> Decimal:
    """Parse a vendor-entered price leniently.

    Currency symbols, thousands separators and words are stripped first.
    Unparseable and negative values come back as ``0``.

    >>> normalize_price("$1,250.00")
    Decimal('1250.00')
    >>> normalize_price("TBD")
    Decimal('0')
    """
    if price is None or isinstance(price, bool):
        return Decimal("0")
    if isinstance(price, (int, float, Decimal)):
        value = to_decimal(price)
    else:
        value = to_decimal(_NON_NUMERIC.sub("", str(price)))
    return value if value > 0 else Decimal("0")


@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: str
    unit_price: Decimal
    min_quantity: int = 1
    minimum_hours: Optional[Decimal] = None
    additional_charge: Decimal = Decimal("0")
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)


def _first_list(details: Any, paths: Sequence[tuple[str, ...]]) -> list:
    for path in paths:
        node = details
        for part in path:
            node = read_field(node, part)
            if node is None:
                break
        if isinstance(node, list) and node:
            return node
    return []


_ITEM_PATHS: dict[str, tuple[tuple[str, ...], ...]] = {
    "catering": (
        ("menuItems",),
        ("catering", "menuItems"),
        ("menu", "items"),
        ("menu", "menu_items"),
        ("items",),
        ("menu_items",),
        ("menu",),
    ),
    "party-rental": (
        ("rentalItems",),
        ("rental", "items"),
        ("rental_items",),
        ("items",),
    ),
    "staff": (
        ("staffServices",),
        ("services",),
    ),
    "venue": (
        ("venueOptions",),
        ("options",),
    ),
}

_COMBO_PATHS = (("catering", "combos"), ("combos",))


def service_items(service: ServiceSelection) -> list[Mapping[str, Any]]:
    """Return the selectable items declared in a service's details."""
    details = service.service_details or {}
    paths = _ITEM_PATHS.get(service.kind)
    if not paths:
        return []
    items = [it for it in _first_list(details, paths) if isinstance(it, Mapping)]
    if service.kind == "catering":
        items.extend(it for it in _first_list(details, _COMBO_PATHS) if isinstance(it, Mapping))
    return items


def service_minimum_hours(service: ServiceSelection) -> Optional[Decimal]:
    details = service.service_details or {}
    raw = read_field(details, "minimumHours")
    if raw is None:
        raw = read_field(read_field(details, "staff"), "minimumHours")
    hours = normalize_price(raw)
    return hours if hours > 0 else None


def _matches(item: Mapping[str, Any], ident: str, keys: Sequence[str]) -> bool:
    return any(item.get(k) is not None and str(item.get(k)) == ident for k in keys)


def _to_catalog_item(raw: Mapping[str, Any]) -> CatalogItem:
    price = raw.get("pricePerPerson")
    if price is None:
        price = raw.get("price")
    min_qty = raw.get("minQuantity")
    hours = normalize_price(raw.get("minimumHours"))
    upcharge = raw.get("additionalCharge")
    if upcharge is None:
        upcharge = raw.get("upcharge")
    return CatalogItem(
        id=str(read_field(raw, "id", "itemId", "cateringId", "name", "title") or ""),
        name=str(read_field(raw, "name", "title", "menuItemName", "id") or ""),
        unit_price=normalize_price(price),
        min_quantity=min_qty if isinstance(min_qty, int) and min_qty > 0 else 1,
        minimum_hours=hours if hours > 0 else None,
        additional_charge=normalize_price(upcharge),
        raw=raw,
    )


class CatalogResolver:
    """Resolve selectors against one service's catalog."""

    _ITEM_KEYS = ("id", "itemId", "name", "title")

    def __init__(self, service_id: str, items: Sequence[Mapping[str, Any]]):
        self.service_id = service_id
        self.items = tuple(items)

    @classmethod
    def for_service(cls, service: ServiceSelection) -> "CatalogResolver":
        return cls(service.id, service_items(service))

    def find(self, ident: str) -> Optional[CatalogItem]:
        for item in self.items:
            if _matches(item, ident, self._ITEM_KEYS):
                return _to_catalog_item(item)
        return None

    def resolve(self, selector: CatalogSelector) -> Optional[CatalogItem]:
        """Return the priced item for ``selector`` or ``None``."""
        found: Optional[CatalogItem] = None
        if isinstance(selector, CatalogItemRef):
            found = self.find(selector.item_id)
        elif isinstance(selector, ServiceRoleRef):
            # Service-prefixed keys address items of that service only.
            if selector.service_id == self.service_id:
                found = self.find(selector.role_id)
        elif isinstance(selector, ComboItemRef):
            found = self._resolve_combo_item(selector)
        if found is None:
            logger.debug(
                "Unresolved catalog selector",
                extra={"service_id": self.service_id, "selector": repr(selector)},
            )
        return found

    def _resolve_combo_item(self, ref: ComboItemRef) -> Optional[CatalogItem]:
        combo = None
        for item in self.items:
            is_combo = item.get("comboCategories") or item.get("isCombo") or item.get("comboCategoryItems")
            if is_combo and _matches(item, ref.combo_id, ("id", "itemId")):
                combo = item
                break
        if combo is None:
            return None

        for category in combo.get("comboCategories") or []:
            if not isinstance(category, Mapping):
                continue
            if not _matches(category, ref.category_id, ("id", "categoryId")):
                continue
            for sub in category.get("items") or []:
                if isinstance(sub, Mapping) and _matches(sub, ref.item_id, ("id", "itemId")):
                    return _to_catalog_item(sub)

        for sub in combo.get("comboCategoryItems") or []:
            if not isinstance(sub, Mapping):
                continue
            if _matches(sub, ref.item_id, ("cateringId", "id")) and _matches(
                sub, ref.category_id, ("menuName", "categoryId")
            ):
                return _to_catalog_item(sub)
        return None
