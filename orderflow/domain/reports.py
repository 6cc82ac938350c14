from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Literal, Mapping

from orderflow.domain.errors import ValidationError
from orderflow.domain.orders.aggregates import OrderAggregate
from orderflow.domain.pricing.money import format_money, from_cents

PeriodType = Literal["daily", "weekly", "monthly"]
PERIOD_TYPES: tuple[str, ...] = ("daily", "weekly", "monthly")


@dataclass
class PeriodPoint:
    period: str
    value_cents: int = 0
    count: int = 0

    def to_dict(self) -> dict:
        return {"period": self.period, "value": format_money(from_cents(self.value_cents)), "count": self.count}


@dataclass
class ProductReport:
    item_id: str
    item_name: str
    category: str
    total_revenue_cents: int = 0
    total_quantity: int = 0
    order_count: int = 0
    data: dict[str, PeriodPoint] = field(default_factory=dict)

    @property
    def total_revenue(self) -> Decimal:
        return from_cents(self.total_revenue_cents)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "category": self.category,
            "total_revenue": format_money(self.total_revenue),
            "total_quantity": self.total_quantity,
            "order_count": self.order_count,
            "data": [point.to_dict() for _, point in sorted(self.data.items())],
        }


@dataclass
class ClientReport:
    client_id: str
    client_name: str
    total_revenue_cents: int = 0
    order_count: int = 0
    data: dict[str, PeriodPoint] = field(default_factory=dict)

    @property
    def total_revenue(self) -> Decimal:
        return from_cents(self.total_revenue_cents)

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "client_name": self.client_name,
            "total_revenue": format_money(self.total_revenue),
            "order_count": self.order_count,
            "data": [point.to_dict() for _, point in sorted(self.data.items())],
        }


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def period_key(day: date, period: str) -> str:
    if period == "daily":
        return day.isoformat()
    if period == "weekly":
        return week_start(day).isoformat()
    if period == "monthly":
        return f"{day.year:04d}-{day.month:02d}"
    raise ValidationError(f"unsupported period: {period}")


def default_report_range(today: date) -> tuple[date, date]:
    """Three months back through the last day of the current month."""
    month = today.month - 3
    year = today.year
    while month < 1:
        month += 12
        year -= 1
    start_day = min(today.day, _days_in_month(year, month))
    start = date(year, month, start_day)
    end = date(today.year, today.month, _days_in_month(today.year, today.month))
    return start, end


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - timedelta(days=1)).day


def _check_period(period: str) -> None:
    if period not in PERIOD_TYPES:
        raise ValidationError(f"unsupported period: {period}")


def filter_orders(orders: Iterable[OrderAggregate], start: date, end: date) -> list[OrderAggregate]:
    if end < start:
        raise ValidationError("report end must not be before start")
    return [order for order in orders if start <= order.delivery_date <= end]


def build_product_report(
    orders: Iterable[OrderAggregate],
    item_lookup: Mapping[str, tuple[str, str]],
    start: date,
    end: date,
    period: str = "weekly",
) -> list[ProductReport]:
    """Revenue per catalog item from line snapshots.

    ``item_lookup`` maps item id to ``(name, category)``; lines for items no
    longer in the catalog are left out.
    """
    _check_period(period)
    reports: dict[str, ProductReport] = {}
    for order in filter_orders(orders, start, end):
        key = period_key(order.delivery_date, period)
        seen_in_order: set[str] = set()
        for line in order.lines:
            if line.item_id not in item_lookup:
                continue
            report = reports.get(line.item_id)
            if report is None:
                name, category = item_lookup[line.item_id]
                report = reports[line.item_id] = ProductReport(item_id=line.item_id, item_name=name, category=category)
            report.total_revenue_cents += line.subtotal_cents
            report.total_quantity += line.quantity
            point = report.data.setdefault(key, PeriodPoint(period=key))
            point.value_cents += line.subtotal_cents
            point.count += line.quantity
            if line.item_id not in seen_in_order:
                report.order_count += 1
                seen_in_order.add(line.item_id)
    return sorted(reports.values(), key=lambda r: r.total_revenue_cents, reverse=True)


def build_client_report(
    orders: Iterable[OrderAggregate],
    client_lookup: Mapping[str, str],
    start: date,
    end: date,
    period: str = "weekly",
) -> list[ClientReport]:
    """Revenue per client from persisted (discounted) order totals."""
    _check_period(period)
    reports: dict[str, ClientReport] = {}
    for order in filter_orders(orders, start, end):
        name = client_lookup.get(order.client_id)
        if name is None:
            continue
        key = period_key(order.delivery_date, period)
        report = reports.get(order.client_id)
        if report is None:
            report = reports[order.client_id] = ClientReport(client_id=order.client_id, client_name=name)
        report.total_revenue_cents += order.total_cents
        report.order_count += 1
        point = report.data.setdefault(key, PeriodPoint(period=key))
        point.value_cents += order.total_cents
        point.count += 1
    return sorted(reports.values(), key=lambda r: r.total_revenue_cents, reverse=True)
