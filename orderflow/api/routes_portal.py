from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from orderflow.api.schemas import BasketQuoteRequest, PortalOrderRequest
from orderflow.api.utils import client_to_dict, item_to_dict, order_to_dict
from orderflow.core.security import require_client
from orderflow.persistence.models import ClientModel
from orderflow.persistence.pg import get_session
from orderflow.persistence.stores import ItemStore
from orderflow.services.notifications import (
    NotificationDispatcher,
    dispatch_order_notification,
    get_notification_dispatcher,
)
from orderflow.services.orders import OrderService

router = APIRouter(prefix="/portal", tags=["portal"])


@router.get("/me")
def get_me(client: ClientModel = Depends(require_client)):
    return client_to_dict(client)


@router.get("/items")
def list_catalog(
    client: ClientModel = Depends(require_client),
    session: Session = Depends(get_session),
):
    rows = ItemStore(session).fetch_all()
    return {"count": len(rows), "items": [item_to_dict(row) for row in rows]}


@router.get("/orders")
def list_my_orders(
    client: ClientModel = Depends(require_client),
    session: Session = Depends(get_session),
):
    rows = OrderService(session).list_orders(status="pending", client_id=client.id)
    names = {item.id: item.name for item in ItemStore(session).fetch_all()}
    return {"count": len(rows), "orders": [order_to_dict(row, names) for row in rows]}


@router.post("/quote")
def quote_basket(
    request: BasketQuoteRequest,
    client: ClientModel = Depends(require_client),
    session: Session = Depends(get_session),
):
    totals = OrderService(session).quote([line.to_line() for line in request.items])
    return totals.to_dict()


@router.post("/orders", status_code=201)
def place_order(
    request: PortalOrderRequest,
    background_tasks: BackgroundTasks,
    client: ClientModel = Depends(require_client),
    session: Session = Depends(get_session),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    result = OrderService(session).create_order(
        client_id=client.id,
        lines=[line.to_line() for line in request.items],
        delivery_date=request.delivery_date,
        notes=request.notes,
        source="portal",
    )
    if result.notification is not None:
        background_tasks.add_task(dispatch_order_notification, dispatcher, result.notification)
    names = {item.id: item.name for item in ItemStore(session).fetch_all()}
    return {"order": order_to_dict(result.order, names), "pricing": result.totals.to_dict()}


@router.get("/orders/last")
def duplicate_last_order(
    client: ClientModel = Depends(require_client),
    session: Session = Depends(get_session),
):
    return {"form": OrderService(session).duplicate_last_order(client.id)}
