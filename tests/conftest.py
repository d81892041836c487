import pytest

from tracker.database import make_engine
from tracker.models.entities import get_vocabulary
from tracker.services.local_store import LocalStore
from tracker.services.remote_sync import RemoteSyncAdapter
from tracker.services.store import DataStore


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def remote(engine):
    adapter = RemoteSyncAdapter(engine)
    adapter.create_tables()
    return adapter


@pytest.fixture
def local(tmp_path):
    return LocalStore(tmp_path / "data")


@pytest.fixture
def store(local, remote):
    return DataStore(local, remote, vocabulary=get_vocabulary("freight"))


@pytest.fixture
def offline_store(local):
    return DataStore(local, RemoteSyncAdapter(None), vocabulary=get_vocabulary("freight"))


# ---------- payload builders ----------

def make_project(store, name="Factory A", **extra):
    return store.add_project({"name": name, "progress": 0, **extra})


def make_supplier(store, name="Bosch India", **extra):
    return store.add_supplier({"name": name, **extra})


def make_po(store, project, supplier, progress=None, parts=None, number="PO-1", **extra):
    payload = {
        "poNumber": number,
        "projectId": project.id,
        "supplierId": supplier.id,
        "parts": parts if parts is not None else [{"name": "Servo Motor", "quantity": 2}],
        **extra,
    }
    if progress is not None:
        payload["progress"] = progress
    return store.add_purchase_order(payload)


def make_shipment(store, po, part=None, **extra):
    payload = {
        "projectId": po.project_id,
        "supplierId": po.supplier_id,
        "poId": po.id,
        "partId": (part or po.parts[0]).id,
        "type": "Air Freight",
        "trackingNumber": "TRK123",
        **extra,
    }
    return store.add_shipment(payload)
