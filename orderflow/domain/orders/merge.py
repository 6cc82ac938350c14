from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from orderflow.domain.errors import NotFoundError, PreconditionError, ValidationError
from orderflow.domain.orders.aggregates import OrderAggregate, OrderLine
from orderflow.domain.orders.totals import OrderTotals, compute_order_total
from orderflow.domain.pricing.discount import DEFAULT_CURRENCY

MIN_MERGE_SOURCES = 2


@dataclass(frozen=True)
class MergePlan:
    client_id: str
    source_ids: list[str]
    delivery_date: date
    lines: list[OrderLine]
    totals: OrderTotals
    notes: str | None
    status: str = "pending"


def normalize_merge_ids(order_ids: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for order_id in order_ids:
        key = str(order_id).strip()
        if key and key not in seen:
            seen.append(key)
    if len(seen) < MIN_MERGE_SOURCES:
        raise PreconditionError(f"merge requires at least {MIN_MERGE_SOURCES} distinct orders, got {len(seen)}")
    return seen


def _merged_notes(orders: Sequence[OrderAggregate]) -> str | None:
    notes: list[str] = []
    for order in orders:
        text = (order.notes or "").strip()
        if text and text not in notes:
            notes.append(text)
    return "\n".join(notes) or None


def plan_merge(
    order_ids: Iterable[str],
    orders: Sequence[OrderAggregate],
    new_delivery_date: date,
    today: date,
    currency: str = DEFAULT_CURRENCY,
) -> MergePlan:
    """Validate a merge request and compute the merged order without side effects.

    Lines are concatenated in request order and keep their snapshotted prices;
    the discount tier is chosen once from the combined subtotal.
    """
    source_ids = normalize_merge_ids(order_ids)
    by_id = {order.order_id: order for order in orders}

    missing = [order_id for order_id in source_ids if order_id not in by_id]
    if missing:
        raise NotFoundError(f"orders not found: {', '.join(missing)}")

    sources = [by_id[order_id] for order_id in source_ids]
    client_ids = {order.client_id for order in sources}
    if len(client_ids) != 1:
        raise PreconditionError("orders to merge must belong to the same client")

    not_pending = [order.order_id for order in sources if order.status != "pending"]
    if not_pending:
        raise PreconditionError(f"only pending orders can be merged: {', '.join(not_pending)}")

    if new_delivery_date < today:
        raise ValidationError(f"delivery date {new_delivery_date.isoformat()} is in the past")

    lines = [line for order in sources for line in order.lines]
    return MergePlan(
        client_id=client_ids.pop(),
        source_ids=source_ids,
        delivery_date=new_delivery_date,
        lines=lines,
        totals=compute_order_total(lines, currency=currency),
        notes=_merged_notes(sources),
    )
