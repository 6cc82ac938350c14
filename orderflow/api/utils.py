from __future__ import annotations

from datetime import date, datetime, timezone

from orderflow.domain.errors import ConfirmationRequiredError
from orderflow.domain.pricing.money import format_money, from_cents
from orderflow.persistence.models import ClientModel, ItemModel, OrderModel
from orderflow.services.documents import UNKNOWN_ITEM_NAME


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def iso_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_date(text: str, field_name: str = "date") -> date:
    value = text.strip()
    try:
        if len(value) != 10:
            raise ValueError(value)
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{field_name} must be an ISO date (YYYY-MM-DD)") from exc


def require_confirmation(confirm: bool, what: str) -> None:
    if not confirm:
        raise ConfirmationRequiredError(f"deleting a {what} is irreversible; repeat the request with confirm=true")


def client_to_dict(row: ClientModel) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "address": row.address,
        "vat_id": row.vat_id,
        "phone": row.phone,
        "email": row.email,
        "notes": row.notes or "",
        "has_last_order": bool(row.last_order_snapshot),
        "created_at": iso_utc(row.created_at),
    }


def item_to_dict(row: ItemModel) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "category": row.category,
        "unit_price": format_money(from_cents(row.unit_price_cents)),
        "weight_grams": row.weight_grams,
        "picture_url": row.picture_url or "",
        "description": row.description or "",
        "created_at": iso_utc(row.created_at),
    }


def order_to_dict(row: OrderModel, item_names: dict[str, str] | None = None) -> dict:
    return {
        "id": row.id,
        "client_id": row.client_id,
        "delivery_date": row.delivery_date.isoformat(),
        "status": row.status,
        "notes": row.notes or "",
        "total": format_money(from_cents(row.total_cents)),
        "total_cents": row.total_cents,
        "item_count": len(row.lines),
        "items": [
            {
                "item_id": line.item_id,
                "item_name": item_names.get(line.item_id, UNKNOWN_ITEM_NAME) if item_names is not None else None,
                "quantity": line.quantity,
                "unit_price": format_money(from_cents(line.unit_price_cents)),
                "line_total": format_money(from_cents(line.quantity * line.unit_price_cents)),
            }
            for line in row.lines
        ],
        "created_at": iso_utc(row.created_at),
    }
