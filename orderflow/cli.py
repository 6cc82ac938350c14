from __future__ import annotations

import argparse
import json
from datetime import date

from orderflow.core.config import get_settings
from orderflow.core.logging import configure_logging
from orderflow.domain.errors import OrderFlowError
from orderflow.domain.pricing.discount import compute_discount
from orderflow.domain.reports import PERIOD_TYPES, build_client_report, build_product_report, default_report_range
from orderflow.persistence.pg import init_db, session_scope
from orderflow.persistence.stores import ClientStore, ItemStore, OrderStore
from orderflow.services.orders import OrderService, to_aggregate


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OrderFlow CLI")
    top = parser.add_subparsers(dest="command", required=True)

    top.add_parser("init-db", help="Create database tables")

    quote = top.add_parser("quote", help="Show the discount tier for a subtotal")
    quote.add_argument("subtotal", help="Order subtotal in major currency units, e.g. 599.99")

    merge = top.add_parser("merge", help="Merge pending orders of one client")
    merge.add_argument("order_ids", nargs="+", help="Two or more order ids")
    merge.add_argument("--delivery-date", required=True, type=date.fromisoformat)

    report = top.add_parser("report", help="Revenue report")
    report.add_argument("kind", choices=["products", "clients"])
    report.add_argument("--start", type=date.fromisoformat, default=None)
    report.add_argument("--end", type=date.fromisoformat, default=None)
    report.add_argument("--period", choices=list(PERIOD_TYPES), default="weekly")

    return parser


def _print(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _quote(args: argparse.Namespace) -> int:
    info = compute_discount(args.subtotal, currency=get_settings().currency_label)
    _print(info.to_dict())
    return 0


def _merge(args: argparse.Namespace) -> int:
    init_db()
    with session_scope() as session:
        result = OrderService(session).merge_orders(args.order_ids, args.delivery_date)
        _print(
            {
                "order_id": result.order.id,
                "client_id": result.order.client_id,
                "delivery_date": result.order.delivery_date.isoformat(),
                "merged_from": args.order_ids,
                "pricing": result.totals.to_dict(),
            }
        )
    return 0


def _report(args: argparse.Namespace) -> int:
    init_db()
    default_start, default_end = default_report_range(date.today())
    start = args.start or default_start
    end = args.end or default_end
    with session_scope() as session:
        orders = [to_aggregate(row) for row in OrderStore(session).fetch_all()]
        if args.kind == "products":
            lookup = {item.id: (item.name, item.category) for item in ItemStore(session).fetch_all()}
            reports = build_product_report(orders, lookup, start, end, period=args.period)
        else:
            names = {client.id: client.name for client in ClientStore(session).fetch_all()}
            reports = build_client_report(orders, names, start, end, period=args.period)
        _print(
            {
                "range": {"start": start.isoformat(), "end": end.isoformat(), "period": args.period},
                "reports": [item.to_dict() for item in reports],
            }
        )
    return 0


def main() -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args()

    try:
        if args.command == "init-db":
            init_db()
            print("database ready")
            return 0
        if args.command == "quote":
            return _quote(args)
        if args.command == "merge":
            return _merge(args)
        if args.command == "report":
            return _report(args)
    except OrderFlowError as exc:
        parser.exit(1, f"error: {exc}\n")

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
