"""Typed view over the flat selection map.

Cart state arrives as ``{key: quantity}`` where the key shape carries the
identity of what was selected. :func:`parse_selection_key` is the only place
that interprets those shapes; the rest of the engine works with the
:data:`CatalogSelector` union.

Key shapes::

    "tray_12"                     plain catalog item
    "S1"                          aggregate quantity for a known service
    "S1_bartender"                staff role on a known service
    "S1_bartender_duration"       hours attached to "S1_bartender"
    "combo9_mains_chicken"        combo sub-item (combo, category, item)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Union

from .types import to_decimal

DURATION_SUFFIX = "_duration"


@dataclass(frozen=True)
class CatalogItemRef:
    item_id: str


@dataclass(frozen=True)
class ServiceRef:
    service_id: str


@dataclass(frozen=True)
class ServiceRoleRef:
    service_id: str
    role_id: str

    @property
    def key(self) -> str:
        return f"{self.service_id}_{self.role_id}"


@dataclass(frozen=True)
class ComboItemRef:
    combo_id: str
    category_id: str
    item_id: str


@dataclass(frozen=True)
class DurationRef:
    target: str


CatalogSelector = Union[CatalogItemRef, ServiceRef, ServiceRoleRef, ComboItemRef, DurationRef]


def duration_key(key: str) -> str:
    return f"{key}{DURATION_SUFFIX}"


def is_duration_key(key: str) -> bool:
    return key.endswith(DURATION_SUFFIX)


def parse_selection_key(key: str, service_ids: Iterable[str] = ()) -> CatalogSelector:
    """Parse one selection-map key.

    ``service_ids`` are the ids of the services in the cart. They are needed
    to tell ``"S1_bartender"`` (role on service ``S1``) apart from a plain
    item id that happens to contain an underscore. The longest matching
    service id wins so ``"S1_2_waiter"`` binds to ``S1_2`` when both exist.
    """
    if is_duration_key(key):
        return DurationRef(target=key[: -len(DURATION_SUFFIX)])

    known = sorted((sid for sid in service_ids if sid), key=len, reverse=True)
    for sid in known:
        if key == sid:
            return ServiceRef(service_id=sid)
        prefix = f"{sid}_"
        if key.startswith(prefix) and len(key) > len(prefix):
            return ServiceRoleRef(service_id=sid, role_id=key[len(prefix):])

    parts = key.split("_")
    if len(parts) >= 3 and all(parts[:3]):
        return ComboItemRef(combo_id=parts[0], category_id=parts[1], item_id="_".join(parts[2:]))
    return CatalogItemRef(item_id=key)


def iter_quantities(
    selections: Mapping[str, int], service_ids: Iterable[str] = ()
) -> Iterator[tuple[str, CatalogSelector, int]]:
    """Yield ``(key, selector, quantity)`` for every purchasable entry.

    Duration entries and non-positive quantities are skipped.
    """
    ids = tuple(service_ids)
    for key, raw in selections.items():
        selector = parse_selection_key(key, ids)
        if isinstance(selector, DurationRef):
            continue
        qty = quantity_value(raw)
        if qty <= 0:
            continue
        yield key, selector, qty


def quantity_value(raw) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def duration_value(selections: Mapping[str, int], key: str) -> Decimal | None:
    """Return the positive hours stored at ``key + '_duration'``, if any."""
    hours = to_decimal(selections.get(duration_key(key)))
    return hours if hours > 0 else None
