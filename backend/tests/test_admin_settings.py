import asyncio
import logging
from decimal import Decimal

import httpx

import app.services.admin_settings as admin_settings
from app.services.pricing.types import FeeSettings

URL = "https://admin.example.com/api/settings"


def _fake_client(payload=None, exc=None, seen=None):
    class Resp:
        status_code = 200

        def raise_for_status(self):
            pass

        def json(self):
            return payload

    class FakeClient:
        def __init__(self, *args, **kwargs):
            if seen is not None:
                seen.update(kwargs)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            return False

        async def get(self, url):
            if exc is not None:
                raise exc
            return Resp()

    return FakeClient


def test_defaults_without_provider():
    assert admin_settings.get_fee_settings() == FeeSettings(
        service_fee_percentage=Decimal("5.0"),
        service_fee_fixed=Decimal("0"),
        service_fee_type="percentage",
    )


def test_provider_values_override_defaults(monkeypatch):
    seen = {}
    payload = {"settings": {"serviceFeePercentage": 3, "serviceFeeType": "hybrid", "serviceFeeFixed": "1.50"}}
    monkeypatch.setattr(admin_settings.httpx, "AsyncClient", _fake_client(payload, seen=seen))
    fee = admin_settings.get_fee_settings(url=URL, timeout=2)
    assert fee.service_fee_percentage == Decimal("3")
    assert fee.service_fee_fixed == Decimal("1.50")
    assert fee.service_fee_type == "hybrid"
    assert seen["timeout"] == 2


def test_bare_settings_object(monkeypatch):
    monkeypatch.setattr(admin_settings.httpx, "AsyncClient", _fake_client({"isServiceFeeWaived": True}))
    assert admin_settings.get_fee_settings(url=URL).is_service_fee_waived is True


def test_fetch_failure_falls_back_to_defaults(monkeypatch, caplog):
    caplog.set_level(logging.WARNING, logger="app.services.admin_settings")
    monkeypatch.setattr(admin_settings.httpx, "AsyncClient", _fake_client(exc=httpx.ConnectError("boom")))
    fee = admin_settings.get_fee_settings(url=URL)
    assert fee == admin_settings.default_fee_settings()
    assert any("Admin settings fetch failed" in r.getMessage() for r in caplog.records)


def test_non_object_payload_falls_back_to_defaults(monkeypatch):
    monkeypatch.setattr(admin_settings.httpx, "AsyncClient", _fake_client(["nope"]))
    assert admin_settings.get_fee_settings(url=URL) == admin_settings.default_fee_settings()


def test_async_lookup_uses_configured_url(monkeypatch, no_admin_settings_provider):
    monkeypatch.setattr(no_admin_settings_provider, "ADMIN_SETTINGS_URL", URL)
    monkeypatch.setattr(admin_settings.httpx, "AsyncClient", _fake_client({"serviceFeePercentage": "0"}))
    fee = asyncio.run(admin_settings.get_fee_settings_async())
    assert fee.service_fee_percentage == Decimal("0")
