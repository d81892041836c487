# tracker/api/data.py

from fastapi import APIRouter, Depends, HTTPException

from ..services.store import COLLECTION_TYPES, DataStore, get_store

router = APIRouter(prefix="/api/data", tags=["data"])


@router.get("/status")
def get_status(store: DataStore = Depends(get_store)):
    """
    Load/sync status for the dashboard header.

    `is_loading` is only true while the startup resolution runs; `is_dirty`
    means local edits have not been confirmed by the remote store yet.
    """
    return store.status()


@router.get("/snapshot")
def get_snapshot(store: DataStore = Depends(get_store)):
    return store.snapshot().to_dict()


@router.get("/{collection}")
def get_collection(collection: str, store: DataStore = Depends(get_store)):
    if collection not in COLLECTION_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown collection '{collection}'")
    return [r.to_dict() for r in store.records(collection)]
