from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderflow.api.schemas import ItemCreateRequest, ItemUpdateRequest
from orderflow.api.utils import item_to_dict, require_confirmation
from orderflow.core.security import require_admin
from orderflow.persistence.pg import get_session
from orderflow.services.catalog import ItemService

router = APIRouter(tags=["items"], dependencies=[Depends(require_admin)])


@router.get("/items")
def list_items(
    category: str | None = Query(default=None),
    session: Session = Depends(get_session),
):
    rows = ItemService(session).list_items()
    if category:
        rows = [row for row in rows if row.category == category]
    return {"count": len(rows), "items": [item_to_dict(row) for row in rows]}


@router.get("/items/{item_id}")
def get_item(item_id: str, session: Session = Depends(get_session)):
    return item_to_dict(ItemService(session).get_item(item_id))


@router.post("/items", status_code=201)
def create_item(request: ItemCreateRequest, session: Session = Depends(get_session)):
    return item_to_dict(ItemService(session).create_item(request.model_dump()))


@router.patch("/items/{item_id}")
def update_item(item_id: str, request: ItemUpdateRequest, session: Session = Depends(get_session)):
    values = request.model_dump(exclude_unset=True)
    return item_to_dict(ItemService(session).update_item(item_id, values))


@router.delete("/items/{item_id}")
def delete_item(
    item_id: str,
    confirm: bool = Query(default=False),
    session: Session = Depends(get_session),
):
    require_confirmation(confirm, "catalog item")
    ItemService(session).delete_item(item_id)
    return {"deleted": item_id}
