from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderflow.api.schemas import ClientCreateRequest, ClientUpdateRequest
from orderflow.api.utils import client_to_dict, require_confirmation
from orderflow.core.security import require_admin
from orderflow.persistence.pg import get_session
from orderflow.services.catalog import ClientService

router = APIRouter(tags=["clients"], dependencies=[Depends(require_admin)])


@router.get("/clients")
def list_clients(session: Session = Depends(get_session)):
    rows = ClientService(session).list_clients()
    return {"count": len(rows), "clients": [client_to_dict(row) for row in rows]}


@router.get("/clients/{client_id}")
def get_client(client_id: str, session: Session = Depends(get_session)):
    return client_to_dict(ClientService(session).get_client(client_id))


@router.post("/clients", status_code=201)
def create_client(request: ClientCreateRequest, session: Session = Depends(get_session)):
    return client_to_dict(ClientService(session).create_client(request.model_dump()))


@router.patch("/clients/{client_id}")
def update_client(client_id: str, request: ClientUpdateRequest, session: Session = Depends(get_session)):
    values = request.model_dump(exclude_unset=True)
    return client_to_dict(ClientService(session).update_client(client_id, values))


@router.delete("/clients/{client_id}")
def delete_client(
    client_id: str,
    confirm: bool = Query(default=False, description="must be true; also removes the client's orders"),
    session: Session = Depends(get_session),
):
    require_confirmation(confirm, "client")
    ClientService(session).delete_client(client_id)
    return {"deleted": client_id}
