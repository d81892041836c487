from sqlmodel import Session, SQLModel, select

from tracker.models.entities import Client, Snapshot
from tracker.models.remote import ClientRow, PartRow, ProjectRow, ShipmentRow
from tracker.seed_data import generate_sample_data
from tracker.services.remote_sync import RemoteSyncAdapter


def _by_id(records):
    return sorted(records, key=lambda r: r.id)


def _assert_same(a: Snapshot, b: Snapshot):
    for attr in ("projects", "clients", "suppliers", "purchase_orders", "external_links", "shipments"):
        assert _by_id(getattr(a, attr)) == _by_id(getattr(b, attr)), attr


def test_push_then_pull_round_trip(remote):
    snapshot = generate_sample_data(seed=11)

    pushed = remote.push_all(snapshot)
    assert pushed.success, pushed.error
    assert pushed.upserted["parts"] == sum(len(po.parts) for po in snapshot.purchase_orders)

    pulled = remote.pull_all()
    assert pulled.success, pulled.error
    _assert_same(pulled.snapshot, snapshot)


def test_pull_keeps_part_order(remote):
    snapshot = generate_sample_data(seed=5)
    remote.push_all(snapshot)
    pulled = remote.pull_all().snapshot
    for po in snapshot.purchase_orders:
        match = next(p for p in pulled.purchase_orders if p.id == po.id)
        assert match.part_ids() == po.part_ids()


def test_upsert_is_idempotent(remote, engine):
    client = Client(id="c1", name="Tata")
    remote.push_all(Snapshot(clients=[client]))
    remote.push_all(Snapshot(clients=[client.model_copy(update={"name": "Tata Motors"})]))

    with Session(engine) as session:
        rows = session.exec(select(ClientRow)).all()
    assert [(r.id, r.name) for r in rows] == [("c1", "Tata Motors")]


def test_push_prunes_rows_deleted_locally(remote, engine):
    snapshot = generate_sample_data(seed=4)
    remote.push_all(snapshot)

    trimmed = snapshot.model_copy(update={"shipments": snapshot.shipments[1:]})
    result = remote.push_all(trimmed)

    assert result.success
    assert result.deleted["shipments"] == 1
    with Session(engine) as session:
        assert len(session.exec(select(ShipmentRow)).all()) == len(trimmed.shipments)


def test_push_without_pruning_keeps_remote_rows(engine):
    adapter = RemoteSyncAdapter(engine, prune=False)
    adapter.create_tables()
    adapter.push_all(Snapshot(clients=[Client(id="c1", name="A")]))
    result = adapter.push_all(Snapshot(clients=[Client(id="c2", name="B")]))

    assert result.deleted == {}
    assert len(adapter.pull_all().snapshot.clients) == 2


def test_pull_tolerates_missing_shipments_table(remote, engine):
    remote.push_all(generate_sample_data(seed=9))
    ShipmentRow.__table__.drop(engine)

    result = remote.pull_all()

    assert result.success
    assert result.snapshot.shipments == []
    assert result.snapshot.projects


def test_failed_step_is_reported(engine):
    tables = [
        t for t in SQLModel.metadata.sorted_tables if t.name != ShipmentRow.__tablename__
    ]
    SQLModel.metadata.create_all(engine, tables=tables)
    adapter = RemoteSyncAdapter(engine)

    result = adapter.push_all(generate_sample_data(seed=2))

    assert not result.success
    assert result.step == "shipments"
    assert "shipments" in result.message
    assert result.error
    # earlier steps are committed and not rolled back
    assert result.upserted["clients"] == 4
    with Session(engine) as session:
        assert session.exec(select(PartRow)).first() is not None


def test_disabled_remote():
    adapter = RemoteSyncAdapter(None)
    assert not adapter.enabled
    adapter.create_tables()

    pushed = adapter.push_all(Snapshot())
    pulled = adapter.pull_all()

    assert not pushed.success and pushed.step == "connect"
    assert not pulled.success and pulled.step == "connect"


def test_result_dict_has_no_snapshot(remote):
    remote.push_all(generate_sample_data(seed=1))
    data = remote.pull_all().to_dict()
    assert data["success"] is True
    assert "snapshot" not in data


def test_pull_rejects_invalid_remote_rows(remote, engine):
    remote.push_all(generate_sample_data(seed=6))
    with Session(engine) as session:
        session.add(ProjectRow(id="bad", name="Broken", status="Pending", progress=500))
        session.commit()

    result = remote.pull_all()

    assert not result.success
    assert result.step == "validate"
    assert result.snapshot is None
    assert "progress" in result.error
