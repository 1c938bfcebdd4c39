"""Custom surcharges and discounts.

Admins attach adjustments to an order. Each becomes a signed breakdown entry;
taxable entries feed the tax base, the rest are added after tax (a post-tax
gratuity, for instance).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Mapping

from .types import CENT, ZERO, AdjustmentEntry, read_field, to_decimal

logger = logging.getLogger(__name__)

MODE_SURCHARGE = "surcharge"
MODE_DISCOUNT = "discount"
TYPE_PERCENTAGE = "percentage"
TYPE_FIXED = "fixed"


@dataclass(frozen=True)
class AdjustmentSplit:
    taxable: Decimal
    non_taxable: Decimal

    @property
    def total(self) -> Decimal:
        return self.taxable + self.non_taxable


def _is_taxable(raw: Any) -> bool:
    return read_field(raw, "taxable") is not False


def build_breakdown(adjustments: Iterable[Any], subtotal: Decimal) -> List[AdjustmentEntry]:
    """Turn raw admin adjustments into signed breakdown entries.

    Percentages apply to the service subtotal. Entries without a numeric
    ``value`` are dropped. Entries that already carry an ``amount`` keep it.
    """
    entries: List[AdjustmentEntry] = []
    for index, raw in enumerate(adjustments or ()):
        if raw is None:
            continue
        if isinstance(raw, AdjustmentEntry):
            entries.append(replace(raw, amount=raw.amount.quantize(CENT, rounding=ROUND_HALF_UP)))
            continue
        value = to_decimal(read_field(raw, "value"), default=Decimal("NaN"))
        if value.is_nan():
            logger.debug("Dropping adjustment with non-numeric value", extra={"adjustment": repr(raw)})
            continue
        adj_type = str(read_field(raw, "type") or TYPE_FIXED).lower()
        mode = str(read_field(raw, "mode") or MODE_SURCHARGE).lower()

        preset = read_field(raw, "amount")
        if preset is not None:
            amount = to_decimal(preset)
        else:
            amount = subtotal * value / Decimal("100") if adj_type == TYPE_PERCENTAGE else value
            if mode == MODE_DISCOUNT:
                amount = -amount

        entries.append(
            AdjustmentEntry(
                id=str(read_field(raw, "id") or f"adj-{index}"),
                label=str(read_field(raw, "label") or "Adjustment"),
                type=adj_type,
                mode=mode,
                value=value,
                amount=amount.quantize(CENT, rounding=ROUND_HALF_UP),
                taxable=_is_taxable(raw),
            )
        )
    return entries


def split_adjustments(entries: Iterable[AdjustmentEntry | Mapping[str, Any]]) -> AdjustmentSplit:
    """Partition signed adjustment amounts by taxability.

    Signs are taken as given; an entry is taxable unless ``taxable`` is
    explicitly ``False``.
    """
    taxable = ZERO
    non_taxable = ZERO
    for entry in entries:
        amount = to_decimal(read_field(entry, "amount"))
        if _is_taxable(entry):
            taxable += amount
        else:
            non_taxable += amount
    return AdjustmentSplit(taxable=taxable, non_taxable=non_taxable)
