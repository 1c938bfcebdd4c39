from decimal import Decimal

from fastapi.testclient import TestClient

from app.main import app
from app.services.pricing import coerce_snapshot

client = TestClient(app)

CART = {
    "services": [
        {
            "id": "cat1",
            "serviceType": "catering",
            "price": "0",
            "serviceDetails": {"menuItems": [{"id": "m1", "name": "Tacos", "price": "$10.00"}]},
        },
        {"id": "S1", "serviceType": "staff", "serviceDetails": {"staffServices": [{"id": "server", "price": 30}]}},
    ],
    "selectedItems": {"m1": 10, "S1_server": 2, "S1_server_duration": 4},
    "customAdjustments": [
        {"label": "Gratuity", "type": "fixed", "mode": "surcharge", "value": 10, "taxable": False}
    ],
    "billingAddress": "500 Congress Ave, Austin, Texas",
}


def test_healthz():
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_reconcile_live_cart():
    res = client.post("/api/v1/pricing/reconcile", json=CART)
    assert res.status_code == 200
    data = res.json()
    assert data["source"] == "live"
    assert data["currency"] == "USD"
    # 100 catering + 30*2*4 staff
    assert Decimal(data["subtotal"]) == Decimal("340.00")
    assert Decimal(data["service_fee"]) == Decimal("17.00")
    # (340 + 17) * 6.25% = 22.3125
    assert Decimal(data["tax"]) == Decimal("22.31")
    assert Decimal(data["total"]) == Decimal("389.31")
    assert data["tax_state"]["source"] == "location"
    assert Decimal(data["service_totals"]["S1"]) == Decimal("240.00")


def test_reconcile_lists_service_lines():
    data = client.post("/api/v1/pricing/reconcile", json=CART).json()
    catering, staff = data["service_lines"]
    assert catering["service_id"] == "cat1"
    assert catering["staffing"] is None
    [item] = catering["items"]
    assert (item["key"], item["quantity"], Decimal(item["amount"])) == ("m1", 10, Decimal("100.00"))
    assert staff["staffing"]["staff_count"] == 2
    assert Decimal(staff["staffing"]["effective_duration"]) == Decimal("4")
    assert staff["staffing"]["role_keys"] == ["S1_server"]
    assert Decimal(staff["items"][0]["hours"]) == Decimal("4")
    assert Decimal(staff["total"]) == Decimal("240.00")


def test_request_settings_override_defaults():
    body = dict(CART, settings={"isServiceFeeWaived": True, "isTaxExempt": True})
    data = client.post("/api/v1/pricing/reconcile", json=body).json()
    assert Decimal(data["service_fee"]) == Decimal("0")
    assert Decimal(data["tax"]) == Decimal("0")
    assert Decimal(data["tax_rate"]) == Decimal("0.0625")
    assert data["tax_state"]["exempt"] is True
    assert Decimal(data["total"]) == Decimal("350.00")


def test_pending_tax_without_address():
    body = {k: v for k, v in CART.items() if k != "billingAddress"}
    data = client.post("/api/v1/pricing/reconcile", json=body).json()
    assert data["tax_state"]["pending"] is True
    assert Decimal(data["tax"]) == Decimal("0")


def test_snapshot_is_authoritative():
    snapshot = {
        "subtotal": "250.00",
        "serviceFee": "12.50",
        "deliveryFee": "0",
        "adjustmentsTotal": "0",
        "adjustmentsBreakdown": [],
        "tax": "18.50",
        "taxRate": "0.07",
        "total": "281.00",
    }
    res = client.post("/api/v1/pricing/reconcile", json=dict(CART, pricingSnapshot=snapshot))
    assert res.status_code == 200
    data = res.json()
    assert data["source"] == "snapshot"
    assert Decimal(data["total"]) == Decimal("281.00")
    assert Decimal(data["subtotal"]) == Decimal("250.00")


def test_malformed_snapshot_returns_field_errors():
    res = client.post("/api/v1/pricing/reconcile", json=dict(CART, pricingSnapshot={"subtotal": "1"}))
    assert res.status_code == 422
    detail = res.json()["detail"]
    assert detail["message"] == "Malformed pricing snapshot"
    assert detail["field_errors"]["total"] == "required"
    assert detail["field_errors"]["adjustmentsBreakdown"] == "required"


def test_snapshot_with_unreadable_issued_at_is_rejected():
    res = client.post("/api/v1/pricing/snapshot", json=CART)
    snapshot = dict(res.json(), issuedAt="not a date")
    res = client.post("/api/v1/pricing/reconcile", json={"pricingSnapshot": snapshot})
    assert res.status_code == 422
    assert res.json()["detail"]["field_errors"] == {"issuedAt": "invalid"}


def test_invalid_adjustment_rejected():
    body = dict(CART, customAdjustments=[{"type": "tiered", "value": 5}])
    res = client.post("/api/v1/pricing/reconcile", json=body)
    assert res.status_code == 422


def test_issue_snapshot_then_replay():
    res = client.post("/api/v1/pricing/snapshot", json=CART)
    assert res.status_code == 201
    snapshot = res.json()
    assert snapshot["serviceFee"] == "17.00"
    assert snapshot["issuedAt"]
    assert coerce_snapshot(snapshot).issued_at is not None

    replay = client.post(
        "/api/v1/pricing/reconcile",
        json={"services": [], "selectedItems": {}, "pricingSnapshot": snapshot},
    ).json()
    assert replay["source"] == "snapshot"
    assert Decimal(replay["total"]) == Decimal(snapshot["total"])


def test_tax_rate_lookup():
    res = client.get("/api/v1/pricing/tax-rate", params={"location": "Oakland, CA 94612"})
    assert res.status_code == 200
    data = res.json()
    assert Decimal(data["rate"]) == Decimal("0.1075")
    assert data["jurisdiction"] == "Oakland, Alameda County"


def test_tax_rate_requires_location():
    res = client.get("/api/v1/pricing/tax-rate")
    assert res.status_code == 422
    assert res.json()["detail"]["field_errors"] == {"location": "required"}
