from __future__ import annotations

from typing import Dict


class PricingError(ValueError):
    """Base class for errors the pricing engine surfaces to callers."""


class SnapshotError(PricingError):
    """A persisted pricing snapshot is missing fields or holds bad values."""

    def __init__(self, message: str, field_errors: Dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.field_errors = dict(field_errors or {})


class ReconciliationError(PricingError):
    """Live totals do not add up. Indicates a bug, never bad input."""
