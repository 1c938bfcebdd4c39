"""
Locust load script for the pricing API.

Simulates a checkout page that re-prices on every cart edit:
- Reconcile a live cart with a random mix of catering items and staff roles
- Re-reconcile after small quantity changes (typing in a quantity box)
- Occasionally issue a snapshot, then replay it as an issued invoice
- Occasionally look up a tax rate for a random address

Configure with env vars or Locust UI:
- HOST: pass via `--host http://localhost:8000`
- PRICING_ADDRESSES: `|`-separated billing addresses (overrides defaults)
- PRICING_SNAPSHOT_RATIO: share of carts that get a snapshot issued (default 0.1)

Run:
  locust -f load/locustfile.py --host http://localhost:8000
Open http://localhost:8089, start 50 users @ spawn 10/s.
"""

from __future__ import annotations

import os
import random
from typing import Dict, List, Optional

from locust import HttpUser, task, between, events
import logging


# --- Config -------------------------------------------------------------------

DEFAULT_ADDRESSES = [
    "1 Market St, San Francisco, CA 94105",
    "500 Congress Ave, Austin, Texas",
    "1 Broadway, Oakland, CA 94607",
    "Reno NV",
    "Nowhere in particular",
]


def _load_addresses() -> List[str]:
    raw = os.getenv("PRICING_ADDRESSES", "").strip()
    if not raw:
        return DEFAULT_ADDRESSES
    out = [piece.strip() for piece in raw.split("|") if piece.strip()]
    return out or DEFAULT_ADDRESSES


ADDRESSES = _load_addresses()
SNAPSHOT_RATIO = float(os.getenv("PRICING_SNAPSHOT_RATIO", "0.1") or 0.1)

MENU = [
    {"id": "tacos", "name": "Tacos", "price": "$12.50"},
    {"id": "salad", "name": "Salad", "pricePerPerson": 8, "minQuantity": 10},
    {"id": "dessert", "name": "Dessert", "price": "4"},
]
ROLES = [{"id": "bartender", "price": 45}, {"id": "server", "price": 30}]


# --- Helpers ------------------------------------------------------------------

def _safe_json(resp) -> Dict:
    try:
        return resp.json()
    except Exception:
        return {}


def _services() -> List[Dict]:
    return [
        {"id": "cat1", "serviceType": "catering", "serviceDetails": {"menuItems": MENU}},
        {
            "id": "S1",
            "serviceType": "staff",
            "serviceDetails": {"staffServices": ROLES, "minimumHours": 3},
        },
        {"id": "v1", "serviceType": "venue", "price": "$750", "quantity": 1},
    ]


def _random_selection() -> Dict[str, int]:
    selection: Dict[str, int] = {}
    for item in MENU:
        if random.random() < 0.7:
            selection[item["id"]] = random.randint(1, 60)
    for role in ROLES:
        if random.random() < 0.5:
            key = f"S1_{role['id']}"
            selection[key] = random.randint(1, 4)
            selection[f"{key}_duration"] = random.randint(2, 8)
    return selection


# --- The User Model -----------------------------------------------------------

class CheckoutUser(HttpUser):
    wait_time = between(0.5, 2)

    selection: Dict[str, int] = {}
    address: Optional[str] = None

    def on_start(self):
        self.selection = _random_selection()
        self.address = random.choice(ADDRESSES)

    def _cart(self) -> Dict:
        body = {"services": _services(), "selectedItems": self.selection}
        if self.address:
            body["billingAddress"] = self.address
        return body

    # ---- tasks ----

    @task(8)
    def reprice_after_edit(self):
        if self.selection:
            key = random.choice([k for k in self.selection if not k.endswith("_duration")] or [None])
            if key is not None:
                self.selection[key] = max(0, self.selection[key] + random.choice([-1, 1]))
        self.client.post("/api/v1/pricing/reconcile", json=self._cart(), name="/pricing/reconcile")

    @task(2)
    def new_cart(self):
        self.selection = _random_selection()
        self.address = random.choice(ADDRESSES) if random.random() < 0.8 else None
        self.client.post("/api/v1/pricing/reconcile", json=self._cart(), name="/pricing/reconcile")

    @task(1)
    def issue_and_replay(self):
        if random.random() > SNAPSHOT_RATIO:
            return
        r = self.client.post("/api/v1/pricing/snapshot", json=self._cart(), name="/pricing/snapshot")
        if r.status_code != 201:
            return
        snapshot = _safe_json(r)
        self.client.post(
            "/api/v1/pricing/reconcile",
            json={"pricingSnapshot": snapshot},
            name="/pricing/reconcile [snapshot]",
        )

    @task(1)
    def tax_rate(self):
        self.client.get(
            "/api/v1/pricing/tax-rate",
            params={"location": random.choice(ADDRESSES)},
            name="/pricing/tax-rate",
        )


# --- Optional event hooks -----------------------------------------------------

@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    logging.getLogger("locust").info(f"Starting test with {len(ADDRESSES)} addresses")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    logging.getLogger("locust").info("Test finished")
