#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from datetime import date, timedelta

import requests

DEMO_ITEMS = [
    {"name": "Tahini 500 g", "category": "spreads", "unit_price": "145.00", "weight_grams": 500},
    {"name": "Hummus classic", "category": "spreads", "unit_price": "89.90", "weight_grams": 250},
    {"name": "Sesame bar", "category": "snacks", "unit_price": "32.50", "weight_grams": 40},
    {"name": "Halva pistachio", "category": "sweets", "unit_price": "210.00", "weight_grams": 400},
]

DEMO_CLIENTS = [
    {
        "name": "Bistro Na Rohu",
        "address": "Masarykova 12, Brno",
        "vat_id": "CZ12345678",
        "phone": "+420 600 000 001",
        "email": "orders@bistro-na-rohu.example",
    },
    {
        "name": "Kavárna Zelená",
        "address": "Údolní 3, Brno",
        "vat_id": "CZ87654321",
        "phone": "+420 600 000 002",
        "email": "kavarna.zelena@example.com",
    },
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo catalog, clients and orders through the API")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--api-key", default="of-gateway-dev-key")
    parser.add_argument("--admin-email", default="admin@orderflow.local")
    args = parser.parse_args()

    headers = {"X-API-Key": args.api_key, "X-Authenticated-Email": args.admin_email}
    base = args.base_url.rstrip("/")

    items = []
    for payload in DEMO_ITEMS:
        resp = requests.post(f"{base}/items", json=payload, headers=headers, timeout=30)
        resp.raise_for_status()
        items.append(resp.json())

    clients = []
    for payload in DEMO_CLIENTS:
        resp = requests.post(f"{base}/clients", json=payload, headers=headers, timeout=30)
        resp.raise_for_status()
        clients.append(resp.json())

    delivery = (date.today() + timedelta(days=3)).isoformat()
    orders = []
    for client in clients:
        for quantity in (2, 3):
            resp = requests.post(
                f"{base}/orders",
                json={
                    "client_id": client["id"],
                    "delivery_date": delivery,
                    "items": [{"item_id": items[0]["id"], "quantity": quantity}, {"item_id": items[2]["id"], "quantity": 1}],
                },
                headers=headers,
                timeout=30,
            )
            resp.raise_for_status()
            orders.append(resp.json()["order"])

    print(
        json.dumps(
            {"items": len(items), "clients": len(clients), "orders": [order["id"] for order in orders]},
            indent=2,
            ensure_ascii=False,
        )
    )


if __name__ == "__main__":
    main()
