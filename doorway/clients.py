# doorway/clients.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from .auth import require_admin
from .deps import get_geocoder, get_store
from .errors import ClientNotFound, DuplicateClient
from .models import ClientIn, ClientUpdate
from .status import ClientStatus

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/clients", tags=["clients"], dependencies=[Depends(require_admin)])


@router.get("")
def list_clients(search: Optional[str] = Query(default=None), store=Depends(get_store)):
    return store.list_clients(search=search)


@router.post("", status_code=201)
def create_client(payload: ClientIn, store=Depends(get_store), geocoder=Depends(get_geocoder)):
    if store.find_client_by_email(payload.email):
        raise DuplicateClient(payload.email)
    log.info(f"Creating client: {payload.email}")
    return store.insert_client({
        **payload.model_dump(),
        "location": geocoder.locate(payload.address),
        "status": ClientStatus.LEAD.value,
        "total_spent": 0,
        "job_count": 0,
        "last_service_date": None,
    })


@router.get("/{client_id}")
def get_client(client_id: str, store=Depends(get_store)):
    client = store.get_client(client_id)
    if not client:
        raise ClientNotFound(client_id)
    return {**client, "jobs": store.list_jobs(client_id=client_id)}


@router.patch("/{client_id}")
def update_client(client_id: str, payload: ClientUpdate, store=Depends(get_store), geocoder=Depends(get_geocoder)):
    client = store.get_client(client_id)
    if not client:
        raise ClientNotFound(client_id)

    changes = payload.model_dump(exclude_none=True, mode="json")
    if changes.get("email") and changes["email"] != client.get("email"):
        other = store.find_client_by_email(changes["email"])
        if other and other["id"] != client_id:
            raise DuplicateClient(changes["email"])
    if changes.get("address") and changes["address"] != client.get("address"):
        changes["location"] = geocoder.locate(changes["address"])
    if not changes:
        return client
    return store.update_client(client_id, changes) or client


@router.delete("/{client_id}", status_code=204)
def delete_client(client_id: str, store=Depends(get_store)):
    # jobs keep their client_id; nothing cascades
    if not store.get_client(client_id):
        raise ClientNotFound(client_id)
    store.delete_client(client_id)
    store.log_event("client_deleted", {"client_id": client_id})
