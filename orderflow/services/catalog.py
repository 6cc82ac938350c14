from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from orderflow.domain.errors import NotFoundError, PreconditionError, ValidationError
from orderflow.domain.pricing.money import to_cents, to_decimal
from orderflow.persistence.models import ClientModel, ItemModel
from orderflow.persistence.stores import ClientStore, ItemStore

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ("name", "address", "vat_id", "phone", "email", "notes")
ITEM_FIELDS = ("name", "category", "weight_grams", "picture_url", "description")


class ClientService:
    def __init__(self, session: Session):
        self.store = ClientStore(session)

    def list_clients(self) -> list[ClientModel]:
        return self.store.fetch_all()

    def get_client(self, client_id: str) -> ClientModel:
        client = self.store.get(client_id)
        if client is None:
            raise NotFoundError(f"client not found: {client_id}")
        return client

    def _ensure_email_free(self, email: str, client_id: str | None = None) -> str:
        normalized = email.strip().lower()
        if not normalized:
            raise ValidationError("client email is required")
        existing = self.store.find_by_email(normalized)
        if existing is not None and existing.id != client_id:
            raise PreconditionError(f"client email already registered: {normalized}")
        return normalized

    def create_client(self, values: dict[str, Any]) -> ClientModel:
        data = {key: values.get(key) for key in CLIENT_FIELDS if key in values}
        data["email"] = self._ensure_email_free(str(values.get("email") or ""))
        client = self.store.insert(ClientModel(**data))
        logger.info("client created: id=%s", client.id)
        return client

    def update_client(self, client_id: str, values: dict[str, Any]) -> ClientModel:
        client = self.get_client(client_id)
        data = {key: values[key] for key in CLIENT_FIELDS if key in values}
        if "email" in data:
            data["email"] = self._ensure_email_free(str(data["email"] or ""), client_id=client.id)
        return self.store.update(client, data)

    def delete_client(self, client_id: str) -> None:
        client = self.get_client(client_id)
        order_count = len(client.orders)
        self.store.delete(client)
        logger.info("client deleted: id=%s orders_removed=%s", client_id, order_count)


class ItemService:
    def __init__(self, session: Session):
        self.store = ItemStore(session)

    def list_items(self) -> list[ItemModel]:
        return self.store.fetch_all()

    def get_item(self, item_id: str) -> ItemModel:
        item = self.store.get(item_id)
        if item is None:
            raise NotFoundError(f"item not found: {item_id}")
        return item

    @staticmethod
    def _price_cents(value: Any) -> int:
        price = to_decimal(value)
        if price < 0:
            raise ValidationError("unit price must be non-negative")
        return to_cents(price)

    def create_item(self, values: dict[str, Any]) -> ItemModel:
        data = {key: values.get(key) for key in ITEM_FIELDS if values.get(key) is not None}
        data["unit_price_cents"] = self._price_cents(values.get("unit_price", 0))
        item = self.store.insert(ItemModel(**data))
        logger.info("item created: id=%s", item.id)
        return item

    def update_item(self, item_id: str, values: dict[str, Any]) -> ItemModel:
        item = self.get_item(item_id)
        data = {key: values[key] for key in ITEM_FIELDS if key in values}
        if values.get("unit_price") is not None:
            # Existing order lines keep their own price snapshot.
            data["unit_price_cents"] = self._price_cents(values["unit_price"])
        return self.store.update(item, data)

    def delete_item(self, item_id: str) -> None:
        item = self.get_item(item_id)
        self.store.delete(item)
        logger.info("item deleted: id=%s", item_id)
