"""Admin fee settings with a defaults fallback.

Provides `get_fee_settings_async()` which returns a
:class:`~app.services.pricing.types.FeeSettings`. The admin settings provider
is called over HTTP when ``ADMIN_SETTINGS_URL`` is configured. Any failure,
including a non-object payload, degrades to the configured defaults.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from app.core.config import settings
from app.services.pricing.types import FeeSettings

logger = logging.getLogger(__name__)


def default_fee_settings() -> FeeSettings:
    return FeeSettings.from_config(settings)


def _unwrap(payload: Any) -> Optional[Mapping[str, Any]]:
    """Accept either the bare settings object or ``{"settings": {...}}``."""
    if not isinstance(payload, Mapping):
        return None
    inner = payload.get("settings")
    if isinstance(inner, Mapping):
        return inner
    return payload


async def get_fee_settings_async(
    url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> FeeSettings:
    """Fetch admin fee settings, falling back to defaults on any failure."""
    defaults = default_fee_settings()
    target = url if url is not None else settings.ADMIN_SETTINGS_URL
    if not target:
        return defaults

    try:
        async with httpx.AsyncClient(timeout=timeout or settings.ADMIN_SETTINGS_TIMEOUT) as http:
            res = await http.get(target)
            res.raise_for_status()
            data = _unwrap(res.json())
    except Exception as exc:
        logger.warning("Admin settings fetch failed, using defaults: %s", exc)
        return defaults

    if data is None:
        logger.warning("Admin settings payload was not an object, using defaults")
        return defaults
    return defaults.merged(data)


def get_fee_settings(url: Optional[str] = None, timeout: Optional[float] = None) -> FeeSettings:
    """Sync wrapper around the async settings lookup for scripts and tests."""
    import anyio

    return anyio.run(get_fee_settings_async, url, timeout)
