# tracker/api/entities.py
"""
Mutation endpoints: add / update / delete for every entity type.

    POST   /api/{entity}        -> add, 201 with the stored record
    PATCH  /api/{entity}/{id}   -> partial update, returns the stored record
    DELETE /api/{entity}/{id}   -> delete with cascade, 204

Request bodies are the partial-update models of each record type, so unknown
keys and wrongly typed values are rejected before the store is called.
Validation failures map to 422, unknown ids to 404. When the store has
write-through enabled a successful mutation schedules a remote push in the
background; the response never waits for it.
"""

import logging
from typing import Type

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from pydantic import BaseModel

from ..errors import NotFoundError, ValidationError
from ..models.entities import (
    Client,
    ExternalLink,
    Project,
    PurchaseOrder,
    Record,
    Shipment,
    Supplier,
    payload_model,
)
from ..services.store import DataStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["entities"])

# url segment -> (record type, store method suffix)
ENTITIES = {
    "projects": (Project, "project"),
    "clients": (Client, "client"),
    "suppliers": (Supplier, "supplier"),
    "purchase_orders": (PurchaseOrder, "purchase_order"),
    "shipments": (Shipment, "shipment"),
    "external_links": (ExternalLink, "external_link"),
}


def _schedule_sync(store: DataStore, background_tasks: BackgroundTasks) -> None:
    if store.write_through and store.remote.enabled:
        background_tasks.add_task(store.sync_to_remote)


def _run(fn, *args):
    try:
        return fn(*args)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.to_dict())


def _supplied(payload: BaseModel) -> dict:
    return payload.model_dump(exclude_unset=True)


def _register(segment: str, record_type: Type[Record], suffix: str) -> None:
    Payload = payload_model(record_type)
    tags = [segment]

    @router.post(f"/{segment}", status_code=201, tags=tags, name=f"add_{suffix}")
    def add(
        payload: Payload,
        background_tasks: BackgroundTasks,
        store: DataStore = Depends(get_store),
    ):
        record = _run(getattr(store, f"add_{suffix}"), _supplied(payload))
        _schedule_sync(store, background_tasks)
        return record.to_dict()

    @router.patch(f"/{segment}/{{record_id}}", tags=tags, name=f"update_{suffix}")
    def update(
        record_id: str,
        payload: Payload,
        background_tasks: BackgroundTasks,
        store: DataStore = Depends(get_store),
    ):
        record = _run(getattr(store, f"update_{suffix}"), record_id, _supplied(payload))
        _schedule_sync(store, background_tasks)
        return record.to_dict()

    @router.delete(f"/{segment}/{{record_id}}", status_code=204, tags=tags, name=f"delete_{suffix}")
    def delete(
        record_id: str,
        background_tasks: BackgroundTasks,
        store: DataStore = Depends(get_store),
    ):
        _run(getattr(store, f"delete_{suffix}"), record_id)
        _schedule_sync(store, background_tasks)
        return Response(status_code=204)


for _segment, (_record_type, _suffix) in ENTITIES.items():
    _register(_segment, _record_type, _suffix)
