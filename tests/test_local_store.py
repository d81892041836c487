import json

import pytest

from tracker.errors import PersistenceCorruptError
from tracker.seed_data import generate_sample_data
from tracker.services.local_store import LocalStore


def test_round_trip(local):
    snapshot = generate_sample_data(seed=7)
    local.save(snapshot)
    assert local.read() == snapshot


def test_blob_uses_storage_key_and_camel_case(tmp_path):
    local = LocalStore(tmp_path, storage_key="asepsData")
    local.save(generate_sample_data(seed=1))

    assert local.path == tmp_path / "asepsData.json"
    data = json.loads(local.path.read_text(encoding="utf-8"))
    assert set(data) == {
        "projects", "clients", "suppliers", "purchaseOrders", "externalLinks", "shipments",
    }
    assert "poNumber" in data["purchaseOrders"][0]
    # no temp files left behind
    assert [p.name for p in tmp_path.iterdir()] == ["asepsData.json"]


def test_missing_blob(local):
    assert local.read() is None
    assert local.load() is None


def test_corrupt_blob(local):
    local.data_dir.mkdir(parents=True)
    local.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceCorruptError):
        local.read()
    assert local.load() is None


def test_wrong_shape_counts_as_corrupt(local):
    local.data_dir.mkdir(parents=True)
    local.path.write_text(json.dumps({"projects": "nope"}), encoding="utf-8")
    assert local.load() is None


def test_older_blob_without_shipments(local):
    snapshot = generate_sample_data(seed=3)
    data = snapshot.to_dict()
    del data["shipments"]
    local.data_dir.mkdir(parents=True)
    local.path.write_text(json.dumps(data), encoding="utf-8")

    loaded = local.read()

    assert loaded.shipments == []
    assert loaded.projects == snapshot.projects


def test_clear(local):
    local.save(generate_sample_data(seed=2))
    local.clear()
    assert not local.path.exists()
    # clearing twice is fine
    local.clear()


def test_blob_with_mistyped_field_counts_as_corrupt(local):
    data = generate_sample_data(seed=3).to_dict()
    data["purchaseOrders"][0]["progress"] = "50"
    local.data_dir.mkdir(parents=True)
    local.path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(PersistenceCorruptError) as exc:
        local.read()
    assert "purchaseOrders.0.progress" in str(exc.value)
    assert local.load() is None


def test_blob_with_part_shared_between_orders_counts_as_corrupt(local):
    data = generate_sample_data(seed=3).to_dict()
    first, second = data["purchaseOrders"][:2]
    second["parts"][0]["id"] = first["parts"][0]["id"]
    local.data_dir.mkdir(parents=True)
    local.path.write_text(json.dumps(data), encoding="utf-8")

    assert local.load() is None
