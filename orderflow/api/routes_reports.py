from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from orderflow.api.utils import now_utc, parse_date
from orderflow.core.security import require_admin
from orderflow.domain.reports import (
    PERIOD_TYPES,
    build_client_report,
    build_product_report,
    default_report_range,
)
from orderflow.persistence.pg import get_session
from orderflow.persistence.stores import ClientStore, ItemStore, OrderStore
from orderflow.services.orders import to_aggregate

router = APIRouter(tags=["reports"], dependencies=[Depends(require_admin)])


def _resolve_range(start: str | None, end: str | None):
    default_start, default_end = default_report_range(now_utc().date())
    try:
        start_date = parse_date(start, "start") if start else default_start
        end_date = parse_date(end, "end") if end else default_end
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="report end must not be before start")
    return start_date, end_date


def _range_payload(start, end, period: str) -> dict:
    return {"start": start.isoformat(), "end": end.isoformat(), "period": period}


@router.get("/reports/products")
def get_product_report(
    start: str | None = Query(default=None, description="ISO date, inclusive"),
    end: str | None = Query(default=None, description="ISO date, inclusive"),
    period: str = Query(default="weekly", pattern="^(daily|weekly|monthly)$"),
    session: Session = Depends(get_session),
):
    start_date, end_date = _resolve_range(start, end)
    orders = [to_aggregate(row) for row in OrderStore(session).fetch_all()]
    items = {item.id: (item.name, item.category) for item in ItemStore(session).fetch_all()}
    reports = build_product_report(orders, items, start_date, end_date, period=period)
    return {
        "range": _range_payload(start_date, end_date, period),
        "periods": list(PERIOD_TYPES),
        "reports": [report.to_dict() for report in reports],
    }


@router.get("/reports/clients")
def get_client_report(
    start: str | None = Query(default=None, description="ISO date, inclusive"),
    end: str | None = Query(default=None, description="ISO date, inclusive"),
    period: str = Query(default="weekly", pattern="^(daily|weekly|monthly)$"),
    session: Session = Depends(get_session),
):
    start_date, end_date = _resolve_range(start, end)
    orders = [to_aggregate(row) for row in OrderStore(session).fetch_all()]
    clients = {client.id: client.name for client in ClientStore(session).fetch_all()}
    reports = build_client_report(orders, clients, start_date, end_date, period=period)
    return {
        "range": _range_payload(start_date, end_date, period),
        "periods": list(PERIOD_TYPES),
        "reports": [report.to_dict() for report in reports],
    }
