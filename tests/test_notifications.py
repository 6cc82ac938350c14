from __future__ import annotations

import json

import httpx

from orderflow.core.config import Settings
from orderflow.services.notifications import (
    HTTPNotificationDispatcher,
    NullNotificationDispatcher,
    OrderNotification,
    build_notification_dispatcher,
    dispatch_order_notification,
)

NOTIFICATION = OrderNotification(
    order_id="1a2b3c4d",
    client_name="Bistro Na Rohu",
    total=540.0,
    item_count=2,
    delivery_date="2026-01-12",
)


def _settings(**overrides) -> Settings:
    values = {
        "notifications_enabled": True,
        "notification_base_url": "https://functions.example",
        "notification_api_key": "anon-key",
    }
    values.update(overrides)
    return Settings(**values)


def test_payload_uses_gateway_field_names():
    assert NOTIFICATION.to_payload() == {
        "orderId": "1a2b3c4d",
        "clientName": "Bistro Na Rohu",
        "total": 540.0,
        "itemCount": 2,
        "deliveryDate": "2026-01-12",
    }


def test_http_dispatcher_posts_json_with_bearer_key():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers.get("authorization")
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    dispatcher = HTTPNotificationDispatcher(_settings(), transport=httpx.MockTransport(handler))

    assert dispatcher.send(NOTIFICATION) is True
    assert captured["url"] == "https://functions.example/functions/v1/send-order-sms"
    assert captured["auth"] == "Bearer anon-key"
    assert captured["body"]["orderId"] == "1a2b3c4d"


def test_http_dispatcher_reports_rejection_without_raising():
    dispatcher = HTTPNotificationDispatcher(
        _settings(),
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )
    assert dispatcher.send(NOTIFICATION) is False


def test_http_dispatcher_reports_transport_error_without_raising():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    dispatcher = HTTPNotificationDispatcher(_settings(), transport=httpx.MockTransport(handler))
    assert dispatcher.send(NOTIFICATION) is False


def test_crashing_dispatcher_is_contained():
    class Exploding:
        backend_name = "exploding"

        def send(self, notification):
            raise RuntimeError("boom")

    assert dispatch_order_notification(Exploding(), NOTIFICATION) is False


def test_disabled_notifications_use_null_dispatcher():
    dispatcher = build_notification_dispatcher(_settings(notifications_enabled=False))
    assert isinstance(dispatcher, NullNotificationDispatcher)
    assert dispatcher.send(NOTIFICATION) is False
    assert isinstance(build_notification_dispatcher(_settings()), HTTPNotificationDispatcher)
