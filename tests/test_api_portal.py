from __future__ import annotations

from datetime import date, timedelta

import pytest

from orderflow.core.config import get_settings
from orderflow.services.notifications import get_notification_dispatcher

CLIENT_EMAIL = "orders@bistro.example"


@pytest.fixture()
def portal(client, admin_headers, headers_for):
    items = []
    for name, price in (("Bread", "150.00"), ("Milk", "45.50")):
        resp = client.post("/items", json={"name": name, "unit_price": price}, headers=admin_headers)
        items.append(resp.json())
    resp = client.post("/clients", json={"name": "Bistro Na Rohu", "email": CLIENT_EMAIL}, headers=admin_headers)
    return {"items": items, "client": resp.json(), "headers": headers_for("Orders@Bistro.Example")}


def test_session_reports_role_for_each_identity(client, portal, admin_headers, headers_for):
    assert client.get("/session", headers=admin_headers).json()["role"] == "admin"

    as_client = client.get("/session", headers=portal["headers"]).json()
    assert as_client["role"] == "client"
    assert as_client["email"] == CLIENT_EMAIL
    assert as_client["client"]["id"] == portal["client"]["id"]

    assert client.get("/session", headers=headers_for("stranger@example.com")).json()["role"] == "unauthorized"
    anonymous = client.get("/session").json()
    assert anonymous == {"role": "unauthorized", "email": None, "client": None}


def test_portal_is_closed_to_admins_and_strangers(client, portal, admin_headers, headers_for):
    assert client.get("/portal/me", headers=admin_headers).status_code == 403
    assert client.get("/portal/me", headers=headers_for("stranger@example.com")).status_code == 403
    assert client.get("/portal/me").status_code == 401

    me = client.get("/portal/me", headers=portal["headers"]).json()
    assert me["name"] == "Bistro Na Rohu"
    assert me["has_last_order"] is False


def test_portal_catalog_and_quote(client, portal):
    catalog = client.get("/portal/items", headers=portal["headers"]).json()
    assert [item["name"] for item in catalog["items"]] == ["Bread", "Milk"]

    bread, milk = portal["items"]
    resp = client.post(
        "/portal/quote",
        json={"items": [{"item_id": bread["id"], "quantity": 3}, {"item_id": milk["id"], "quantity": 3}]},
        headers=portal["headers"],
    )
    assert resp.status_code == 200
    quote = resp.json()
    assert quote["subtotal"] == "586.50"
    assert quote["discount_percentage"] == 0
    assert quote["message"] == "Buy for 13.50 Kč more and get 10% discount"

    empty = client.post("/portal/quote", json={"items": []}, headers=portal["headers"]).json()
    assert empty["final_total"] == "0.00"


def test_portal_order_records_snapshot_for_duplication(client, portal):
    sent = []

    class Recorder:
        backend_name = "recording"

        def send(self, notification):
            sent.append(notification)
            return True

    client.app.dependency_overrides[get_notification_dispatcher] = lambda: Recorder()
    bread, milk = portal["items"]
    headers = portal["headers"]

    assert client.get("/portal/orders/last", headers=headers).status_code == 404

    delivery = (date.today() + timedelta(days=2)).isoformat()
    resp = client.post(
        "/portal/orders",
        json={
            "delivery_date": delivery,
            "notes": "ring twice",
            "items": [{"item_id": bread["id"], "quantity": 8}, {"item_id": milk["id"], "quantity": 2}],
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["order"]["client_id"] == portal["client"]["id"]
    assert body["pricing"]["discount_percentage"] == 20
    assert body["order"]["total"] == "1032.80"
    assert len(sent) == 1

    form = client.get("/portal/orders/last", headers=headers).json()["form"]
    assert form == {
        "delivery_date": "",
        "notes": "ring twice",
        "items": [{"item_id": bread["id"], "quantity": 8}, {"item_id": milk["id"], "quantity": 2}],
    }

    mine = client.get("/portal/orders", headers=headers).json()
    assert mine["count"] == 1
    assert client.get("/portal/me", headers=headers).json()["has_last_order"] is True


def test_portal_order_validation(client, portal):
    bread = portal["items"][0]
    headers = portal["headers"]
    yesterday = (date.today() - timedelta(days=1)).isoformat()

    past = client.post(
        "/portal/orders",
        json={"delivery_date": yesterday, "items": [{"item_id": bread["id"], "quantity": 1}]},
        headers=headers,
    )
    assert past.status_code == 422

    empty = client.post("/portal/orders", json={"delivery_date": date.today().isoformat(), "items": []}, headers=headers)
    assert empty.status_code == 422

    unknown = client.post(
        "/portal/orders",
        json={"delivery_date": date.today().isoformat(), "items": [{"item_id": "nope", "quantity": 1}]},
        headers=headers,
    )
    assert unknown.status_code == 422
    assert client.get("/portal/orders", headers=headers).json()["count"] == 0


def test_portal_lists_only_own_pending_orders(client, portal, admin_headers):
    bread = portal["items"][0]
    other = client.post("/clients", json={"name": "Cafe", "email": "cafe@example.com"}, headers=admin_headers).json()
    today = date.today().isoformat()
    for client_id, status in ((portal["client"]["id"], "pending"), (portal["client"]["id"], "shipped"), (other["id"], "pending")):
        client.post(
            "/orders",
            json={"client_id": client_id, "delivery_date": today, "status": status, "items": [{"item_id": bread["id"], "quantity": 1}]},
            headers=admin_headers,
        )

    mine = client.get("/portal/orders", headers=portal["headers"]).json()
    assert mine["count"] == 1
    assert mine["orders"][0]["status"] == "pending"
    assert mine["orders"][0]["client_id"] == portal["client"]["id"]


def test_pricing_endpoints(client):
    tiers = client.get("/pricing/tiers").json()
    assert tiers["tiers"] == [
        {"from": "0.00", "discount_percentage": 0},
        {"from": "600.00", "discount_percentage": 10},
        {"from": "1200.00", "discount_percentage": 20},
    ]

    quote = client.post("/pricing/quote", json={"subtotal": "1200"}).json()
    assert quote["discount_percentage"] == 20
    assert quote["final_total"] == "960.00"

    negative = client.post("/pricing/quote", json={"subtotal": "-5"})
    assert negative.status_code == 422
    assert negative.json()["error"] == "negative_amount"

    for subtotal in ("1e40", "1000000000000.01", "NaN", "Infinity"):
        assert client.post("/pricing/quote", json={"subtotal": subtotal}).status_code == 422


@pytest.mark.parametrize("outcome", ["raise", "reject"])
def test_failed_notification_keeps_portal_order(client, portal, outcome):
    class FailingDispatcher:
        backend_name = "failing"

        def send(self, notification):
            if outcome == "raise":
                raise RuntimeError("sms gateway down")
            return False

    client.app.dependency_overrides[get_notification_dispatcher] = lambda: FailingDispatcher()
    bread = portal["items"][0]

    resp = client.post(
        "/portal/orders",
        json={"delivery_date": date.today().isoformat(), "items": [{"item_id": bread["id"], "quantity": 1}]},
        headers=portal["headers"],
    )

    assert resp.status_code == 201, resp.text
    mine = client.get("/portal/orders", headers=portal["headers"]).json()
    assert [order["id"] for order in mine["orders"]] == [resp.json()["order"]["id"]]
    assert client.get("/portal/orders/last", headers=portal["headers"]).status_code == 200


def test_auth_disabled_uses_forwarded_or_dev_identity(client, portal, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "auth_enabled", False)
    monkeypatch.setattr(settings, "dev_identity_email", CLIENT_EMAIL)

    assert client.get("/session").json()["role"] == "client"
    assert client.get("/session", headers={"X-Authenticated-Email": "admin@orderflow.local"}).json()["role"] == "admin"
