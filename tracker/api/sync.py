# tracker/api/sync.py

from fastapi import APIRouter, Depends

from ..services.store import DataStore, get_store

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.post("/push")
async def push_to_remote(store: DataStore = Depends(get_store)):
    """
    Push the full local snapshot to the remote store.

    Failures come back as {"success": false, "message", "error", "step"}
    with status 200; local data is never rolled back.
    """
    result = await store.sync_to_remote()
    return result.to_dict()


@router.post("/pull")
async def pull_from_remote(store: DataStore = Depends(get_store)):
    result = await store.load_from_remote()
    return result.to_dict()


@router.post("/sample")
def load_sample_data(store: DataStore = Depends(get_store)):
    snapshot = store.generate_sample_data()
    return {"status": "ok", "counts": snapshot.counts()}


@router.post("/clear")
def clear_all_data(store: DataStore = Depends(get_store)):
    store.clear_all()
    return {"status": "ok", "counts": store.snapshot().counts()}
