from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from orderflow.core.config import get_settings
from orderflow.domain.errors import MergeInconsistencyError, NotFoundError, ValidationError
from orderflow.domain.orders.aggregates import ORDER_STATUSES, OrderAggregate, OrderLine
from orderflow.domain.orders.merge import normalize_merge_ids, plan_merge
from orderflow.domain.orders.totals import OrderTotals, compute_order_total, validate_quantity
from orderflow.domain.pricing.money import from_cents
from orderflow.persistence.models import ClientModel, OrderItemModel, OrderModel
from orderflow.persistence.stores import ClientStore, ItemStore, OrderStore
from orderflow.services.documents import UNKNOWN_ITEM_NAME, DocumentLine, OrderDocument, render_order_document
from orderflow.services.notifications import OrderNotification

logger = logging.getLogger(__name__)

OrderSource = Literal["admin", "portal"]


@dataclass(frozen=True)
class LineRequest:
    item_id: str
    quantity: int


@dataclass
class OrderResult:
    order: OrderModel
    totals: OrderTotals
    notification: OrderNotification | None = None


@dataclass(frozen=True)
class ExportedDocument:
    filename: str
    content: bytes
    status_changed: bool


def to_aggregate(row: OrderModel) -> OrderAggregate:
    return OrderAggregate(
        order_id=row.id,
        client_id=row.client_id,
        delivery_date=row.delivery_date,
        lines=[
            OrderLine(item_id=line.item_id, quantity=line.quantity, unit_price_cents=line.unit_price_cents)
            for line in row.lines
        ],
        status=row.status,
        notes=row.notes,
        total_cents=row.total_cents,
        created_at=row.created_at,
    )


def _line_rows(lines: Iterable[OrderLine]) -> list[OrderItemModel]:
    return [
        OrderItemModel(
            position=position,
            item_id=line.item_id,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
        )
        for position, line in enumerate(lines)
    ]


def _form_lines(lines: Iterable[Any]) -> list[dict]:
    return [{"item_id": line.item_id, "quantity": line.quantity} for line in lines]


class OrderService:
    def __init__(
        self,
        session: Session,
        currency: str | None = None,
        today: Callable[[], date] | None = None,
    ):
        self.session = session
        self.currency = currency or get_settings().currency_label
        self.today = today or date.today
        self.orders = OrderStore(session)
        self.items = ItemStore(session)
        self.clients = ClientStore(session)

    # ------------------------------------------------------------------ reads

    def list_orders(self, status: str | None = None, client_id: str | None = None) -> list[OrderModel]:
        if client_id:
            return self.orders.fetch_by_client(client_id, status=status)
        return self.orders.fetch_all(status=status)

    def get_order(self, order_id: str) -> OrderModel:
        row = self.orders.get(order_id)
        if row is None:
            raise NotFoundError(f"order not found: {order_id}")
        return row

    def _get_client(self, client_id: str) -> ClientModel:
        client = self.clients.get(client_id)
        if client is None:
            raise NotFoundError(f"client not found: {client_id}")
        return client

    # --------------------------------------------------------------- pricing

    def _snapshot_lines(
        self,
        requested: Iterable[LineRequest],
        previous_prices: dict[str, int] | None = None,
    ) -> list[OrderLine]:
        requested = list(requested)
        for line in requested:
            validate_quantity(line.quantity)

        previous_prices = previous_prices or {}
        catalog = self.items.fetch_many(
            line.item_id for line in requested if line.item_id not in previous_prices
        )
        lines: list[OrderLine] = []
        for line in requested:
            if line.item_id in previous_prices:
                price = previous_prices[line.item_id]
            else:
                item = catalog.get(line.item_id)
                if item is None:
                    raise ValidationError(f"unknown item: {line.item_id}")
                price = item.unit_price_cents
            lines.append(OrderLine(item_id=line.item_id, quantity=line.quantity, unit_price_cents=price))
        return lines

    def quote(self, requested: Iterable[LineRequest]) -> OrderTotals:
        return compute_order_total(self._snapshot_lines(requested), currency=self.currency)

    def _check_delivery_date(self, delivery_date: date) -> None:
        if delivery_date < self.today():
            raise ValidationError(f"delivery date {delivery_date.isoformat()} is in the past")

    # ---------------------------------------------------------------- writes

    def create_order(
        self,
        client_id: str,
        lines: Iterable[LineRequest],
        delivery_date: date,
        notes: str | None = None,
        status: str = "pending",
        source: OrderSource = "admin",
    ) -> OrderResult:
        client = self._get_client(client_id)
        if status not in ORDER_STATUSES:
            raise ValidationError(f"unsupported status: {status}")
        requested = list(lines)
        if source == "portal":
            self._check_delivery_date(delivery_date)
            if not requested:
                raise ValidationError("an order needs at least one item")

        snapshot = self._snapshot_lines(requested)
        totals = compute_order_total(snapshot, currency=self.currency)
        row = OrderModel(
            client_id=client.id,
            delivery_date=delivery_date,
            status=status,
            notes=notes or None,
            total_cents=totals.total_cents,
            lines=_line_rows(snapshot),
        )
        self.orders.insert(row)

        if source == "portal":
            client.last_order_snapshot = {"notes": notes or "", "items": _form_lines(requested)}
            self.session.flush()

        logger.info(
            "order created: id=%s client=%s source=%s lines=%s total_cents=%s",
            row.id,
            client.id,
            source,
            len(snapshot),
            row.total_cents,
        )
        notification = OrderNotification(
            order_id=row.id[-8:],
            client_name=client.name,
            total=float(from_cents(row.total_cents)),
            item_count=len(snapshot),
            delivery_date=delivery_date.isoformat(),
        )
        return OrderResult(order=row, totals=totals, notification=notification)

    def update_order(
        self,
        order_id: str,
        lines: Iterable[LineRequest] | None = None,
        delivery_date: date | None = None,
        notes: str | None = None,
        status: str | None = None,
        client_id: str | None = None,
    ) -> OrderResult:
        row = self.get_order(order_id)
        values: dict[str, Any] = {}
        if client_id is not None and client_id != row.client_id:
            values["client_id"] = self._get_client(client_id).id
        if delivery_date is not None:
            values["delivery_date"] = delivery_date
        if notes is not None:
            values["notes"] = notes or None
        if status is not None:
            if status not in ORDER_STATUSES:
                raise ValidationError(f"unsupported status: {status}")
            values["status"] = status

        if lines is not None:
            previous_prices: dict[str, int] = {}
            for line in row.lines:
                previous_prices.setdefault(line.item_id, line.unit_price_cents)
            snapshot = self._snapshot_lines(lines, previous_prices=previous_prices)
            self.orders.replace_lines(row, _line_rows(snapshot))
        else:
            snapshot = to_aggregate(row).lines

        totals = compute_order_total(snapshot, currency=self.currency)
        values["total_cents"] = totals.total_cents
        self.orders.update(row, values)
        logger.info("order updated: id=%s fields=%s total_cents=%s", row.id, sorted(values), row.total_cents)
        return OrderResult(order=row, totals=totals)

    def set_status(self, order_id: str, status: str) -> OrderModel:
        return self.update_order(order_id, status=status).order

    def delete_order(self, order_id: str) -> None:
        row = self.get_order(order_id)
        self.orders.delete(row)
        logger.info("order deleted: id=%s", order_id)

    def merge_orders(self, order_ids: Iterable[str], new_delivery_date: date) -> OrderResult:
        """Replace two or more pending orders of one client with a single new order.

        The merged order is inserted and verified before the sources are
        deleted. Everything runs in the caller's transaction, so a failure at
        any step leaves the originals untouched once the session rolls back.
        """
        source_ids = normalize_merge_ids(order_ids)
        rows = self.orders.fetch_many(source_ids)
        plan = plan_merge(
            source_ids,
            [to_aggregate(row) for row in rows],
            new_delivery_date,
            today=self.today(),
            currency=self.currency,
        )

        merged = OrderModel(
            client_id=plan.client_id,
            delivery_date=plan.delivery_date,
            status=plan.status,
            notes=plan.notes,
            total_cents=plan.totals.total_cents,
            lines=_line_rows(plan.lines),
        )
        self.orders.insert(merged)
        stored = self.session.scalar(select(func.count()).select_from(OrderModel).where(OrderModel.id == merged.id))
        if not stored:
            raise MergeInconsistencyError("merged order was not stored", merged.id, plan.source_ids)

        removed = self.orders.delete_many(plan.source_ids)
        if removed != len(plan.source_ids):
            remaining = list(
                self.session.scalars(select(OrderModel.id).where(OrderModel.id.in_(plan.source_ids))).all()
            )
            logger.error(
                "merge inconsistency: merged=%s expected_removed=%s removed=%s remaining=%s",
                merged.id,
                len(plan.source_ids),
                removed,
                remaining,
            )
            raise MergeInconsistencyError(
                f"expected to retire {len(plan.source_ids)} orders, retired {removed}",
                merged.id,
                remaining,
            )

        logger.info(
            "orders merged: merged=%s sources=%s client=%s subtotal_cents=%s total_cents=%s",
            merged.id,
            plan.source_ids,
            plan.client_id,
            plan.totals.subtotal_cents,
            merged.total_cents,
        )
        return OrderResult(order=merged, totals=plan.totals)

    # ------------------------------------------------------------- documents

    def build_document(self, row: OrderModel) -> OrderDocument:
        client = self._get_client(row.client_id)
        catalog = self.items.fetch_many(line.item_id for line in row.lines)
        aggregate = to_aggregate(row)
        lines = [
            DocumentLine(
                name=catalog[line.item_id].name if line.item_id in catalog else UNKNOWN_ITEM_NAME,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
            )
            for line in aggregate.lines
        ]
        return OrderDocument(
            order_id=row.id,
            status=row.status,
            delivery_date=row.delivery_date,
            notes=row.notes,
            client_name=client.name,
            client_address=client.address,
            client_vat_id=client.vat_id,
            client_phone=client.phone,
            client_email=client.email,
            lines=lines,
            totals=compute_order_total(aggregate.lines, currency=self.currency),
        )

    def export_document(self, order_id: str) -> ExportedDocument:
        """Render the order document; the first export moves a pending order to processing."""
        row = self.get_order(order_id)
        document = self.build_document(row)
        content = render_order_document(document, currency=self.currency)

        status_changed = False
        if row.status == "pending":
            self.orders.update(row, {"status": "processing"})
            status_changed = True
            logger.info("order entered fulfillment after export: id=%s", row.id)
        return ExportedDocument(filename=document.filename, content=content, status_changed=status_changed)

    # ----------------------------------------------------------------- forms

    def copy_order(self, order_id: str) -> dict:
        row = self.get_order(order_id)
        return {
            "client_id": row.client_id,
            "delivery_date": row.delivery_date.isoformat(),
            "notes": row.notes or "",
            "items": _form_lines(row.lines),
        }

    def duplicate_last_order(self, client_id: str) -> dict:
        client = self._get_client(client_id)
        snapshot = client.last_order_snapshot
        if not snapshot:
            raise NotFoundError("no previous order found")
        return {
            "delivery_date": "",
            "notes": snapshot.get("notes") or "",
            "items": list(snapshot.get("items") or []),
        }
