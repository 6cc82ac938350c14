from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from orderflow.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderNotification:
    order_id: str
    client_name: str
    total: float
    item_count: int
    delivery_date: str

    def to_payload(self) -> dict:
        return {
            "orderId": self.order_id,
            "clientName": self.client_name,
            "total": self.total,
            "itemCount": self.item_count,
            "deliveryDate": self.delivery_date,
        }


class NotificationDispatcher(Protocol):
    backend_name: str

    def send(self, notification: OrderNotification) -> bool:
        ...


class NullNotificationDispatcher:
    backend_name = "null"

    def send(self, notification: OrderNotification) -> bool:
        logger.debug("notifications disabled, skipping order=%s", notification.order_id)
        return False


class HTTPNotificationDispatcher:
    """Posts new-order alerts to the SMS gateway function.

    Failures are logged and reported as ``False``; they never propagate to the
    order write that triggered them.
    """

    backend_name = "http"

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.settings = settings or get_settings()
        self.url = f"{self.settings.notification_base_url.rstrip('/')}{self.settings.notification_path}"
        self.timeout = max(1, self.settings.notification_timeout_seconds)
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.notification_api_key:
            headers["Authorization"] = f"Bearer {self.settings.notification_api_key}"
        return headers

    def send(self, notification: OrderNotification) -> bool:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, headers=self._headers(), json=notification.to_payload())
        except httpx.HTTPError as exc:
            logger.warning("order notification failed: order=%s error=%s", notification.order_id, exc)
            return False

        if response.is_success:
            logger.info("order notification sent: order=%s", notification.order_id)
            return True

        logger.warning(
            "order notification rejected: order=%s status=%s body=%s",
            notification.order_id,
            response.status_code,
            response.text[:500],
        )
        return False


def build_notification_dispatcher(settings: Settings | None = None) -> NotificationDispatcher:
    settings = settings or get_settings()
    if settings.notifications_enabled:
        return HTTPNotificationDispatcher(settings)
    return NullNotificationDispatcher()


def dispatch_order_notification(dispatcher: NotificationDispatcher, notification: OrderNotification) -> bool:
    """Background task entry point: a crashing dispatcher is logged, never raised."""
    try:
        return dispatcher.send(notification)
    except Exception:
        logger.exception("order notification crashed: order=%s", notification.order_id)
        return False


def get_notification_dispatcher() -> NotificationDispatcher:
    return build_notification_dispatcher()
