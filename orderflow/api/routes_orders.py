from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from orderflow.api.schemas import MergeOrdersRequest, OrderCreateRequest, OrderStatusRequest, OrderUpdateRequest
from orderflow.api.utils import order_to_dict, require_confirmation
from orderflow.core.security import require_admin
from orderflow.domain.orders.aggregates import ORDER_STATUSES
from orderflow.persistence.pg import get_session
from orderflow.persistence.stores import ItemStore
from orderflow.services.notifications import (
    NotificationDispatcher,
    dispatch_order_notification,
    get_notification_dispatcher,
)
from orderflow.services.orders import OrderService

router = APIRouter(tags=["orders"], dependencies=[Depends(require_admin)])


def _item_names(session: Session) -> dict[str, str]:
    return {item.id: item.name for item in ItemStore(session).fetch_all()}


@router.get("/orders")
def list_orders(
    status: str | None = Query(default=None, description=f"one of {', '.join(ORDER_STATUSES)}"),
    client_id: str | None = Query(default=None),
    session: Session = Depends(get_session),
):
    rows = OrderService(session).list_orders(status=status, client_id=client_id)
    names = _item_names(session)
    return {"count": len(rows), "orders": [order_to_dict(row, names) for row in rows]}


@router.post("/orders", status_code=201)
def create_order(
    request: OrderCreateRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    result = OrderService(session).create_order(
        client_id=request.client_id,
        lines=[line.to_line() for line in request.items],
        delivery_date=request.delivery_date,
        notes=request.notes,
        status=request.status,
        source="admin",
    )
    if result.notification is not None:
        background_tasks.add_task(dispatch_order_notification, dispatcher, result.notification)
    return {
        "order": order_to_dict(result.order, _item_names(session)),
        "pricing": result.totals.to_dict(),
    }


@router.post("/orders/merge", status_code=201)
def merge_orders(request: MergeOrdersRequest, session: Session = Depends(get_session)):
    result = OrderService(session).merge_orders(request.order_ids, request.delivery_date)
    return {
        "order": order_to_dict(result.order, _item_names(session)),
        "pricing": result.totals.to_dict(),
        "merged_from": list(dict.fromkeys(request.order_ids)),
    }


@router.get("/orders/{order_id}")
def get_order(order_id: str, session: Session = Depends(get_session)):
    service = OrderService(session)
    row = service.get_order(order_id)
    return order_to_dict(row, _item_names(session))


@router.put("/orders/{order_id}")
def update_order(order_id: str, request: OrderUpdateRequest, session: Session = Depends(get_session)):
    result = OrderService(session).update_order(
        order_id,
        lines=[line.to_line() for line in request.items] if request.items is not None else None,
        delivery_date=request.delivery_date,
        notes=request.notes,
        status=request.status,
        client_id=request.client_id,
    )
    return {
        "order": order_to_dict(result.order, _item_names(session)),
        "pricing": result.totals.to_dict(),
    }


@router.post("/orders/{order_id}/status")
def set_order_status(order_id: str, request: OrderStatusRequest, session: Session = Depends(get_session)):
    row = OrderService(session).set_status(order_id, request.status)
    return order_to_dict(row, _item_names(session))


@router.post("/orders/{order_id}/copy")
def copy_order(order_id: str, session: Session = Depends(get_session)):
    return {"form": OrderService(session).copy_order(order_id)}


@router.get("/orders/{order_id}/document")
def download_order_document(order_id: str, session: Session = Depends(get_session)):
    exported = OrderService(session).export_document(order_id)
    return Response(
        content=exported.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{exported.filename}"',
            "X-Order-Status-Changed": "true" if exported.status_changed else "false",
        },
    )


@router.delete("/orders/{order_id}")
def delete_order(
    order_id: str,
    confirm: bool = Query(default=False),
    session: Session = Depends(get_session),
):
    require_confirmation(confirm, "order")
    OrderService(session).delete_order(order_id)
    return {"deleted": order_id}
