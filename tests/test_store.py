import pytest

from conftest import make_po, make_project, make_shipment, make_supplier
from tracker.errors import NotFoundError, ValidationError
from tracker.models.entities import get_vocabulary
from tracker.services.store import DataStore


def test_add_assigns_id_and_ignores_payload_id(store):
    client = store.add_client({"id": "forged", "name": "Tata Motors"})
    assert client.id and client.id != "forged"
    assert store.get_client(client.id).name == "Tata Motors"


def test_reads_return_copies(store):
    client = store.add_client({"name": "Tata Motors"})
    store.records("clients")[0].name = "changed"
    client.name = "changed too"
    assert store.get_client(client.id).name == "Tata Motors"


def test_unknown_collection(store):
    with pytest.raises(KeyError):
        store.records("invoices")


def test_update_is_partial_merge(store):
    project = make_project(store, location="Pune", projectManager="Rahul")
    updated = store.update_project(project.id, {"location": "Nashik"})
    assert updated.id == project.id
    assert updated.location == "Nashik"
    assert updated.project_manager == "Rahul"


def test_failed_mutation_leaves_state_unchanged(store):
    project = make_project(store)
    before = store.snapshot()
    version = store.version

    with pytest.raises(ValidationError):
        store.update_project(project.id, {"progress": 150})
    with pytest.raises(NotFoundError):
        store.update_project("missing", {"name": "x"})
    with pytest.raises(NotFoundError):
        store.delete_client("missing")

    assert store.snapshot() == before
    assert store.version == version


def test_project_requires_existing_client(store):
    with pytest.raises(NotFoundError):
        make_project(store, clientId="nope")
    project = make_project(store, clientId="")
    assert project.client_id is None


def test_delete_client_nulls_project_reference(store):
    client = store.add_client({"name": "Tata Motors"})
    project = make_project(store, clientId=client.id)

    store.delete_client(client.id)

    assert store.records("clients") == []
    assert store.get_project(project.id).client_id is None


def test_delete_project_cascades(store):
    project = make_project(store)
    other = make_project(store, name="Factory B")
    supplier = make_supplier(store)
    po1 = make_po(store, project, supplier, number="PO-1")
    make_po(store, project, supplier, number="PO-2")
    kept_po = make_po(store, other, supplier, number="PO-3")
    make_shipment(store, po1)
    make_shipment(store, kept_po)
    store.add_external_link({"projectId": project.id, "title": "Report", "url": "https://r/1"})
    kept_link = store.add_external_link(
        {"projectId": other.id, "title": "Report", "url": "https://r/2"}
    )

    store.delete_project(project.id)

    state = store.snapshot()
    assert [p.id for p in state.projects] == [other.id]
    assert [po.id for po in state.purchase_orders] == [kept_po.id]
    assert all(s.project_id != project.id for s in state.shipments)
    assert len(state.shipments) == 1
    assert [el.id for el in state.external_links] == [kept_link.id]


def test_project_progress_follows_purchase_orders(store):
    project = make_project(store)
    supplier = make_supplier(store)
    assert store.get_project(project.id).progress == 0

    first = make_po(store, project, supplier, progress=50, number="PO-1")
    assert store.get_project(project.id).progress == 50

    make_po(store, project, supplier, progress=30, number="PO-2")
    assert store.get_project(project.id).progress == 40

    store.delete_purchase_order(first.id)
    assert store.get_project(project.id).progress == 30


def test_project_without_orders_keeps_its_progress(store):
    project = make_project(store, progress=70)
    supplier = make_supplier(store)
    po = make_po(store, project, supplier, progress=20)
    store.delete_purchase_order(po.id)
    assert store.get_project(project.id).progress == 20
    store.update_project(project.id, {"progress": 65})
    assert store.get_project(project.id).progress == 65


def test_moving_purchase_order_recomputes_both_projects(store):
    a = make_project(store, name="A")
    b = make_project(store, name="B")
    supplier = make_supplier(store)
    make_po(store, a, supplier, progress=20, number="PO-1")
    moving = make_po(store, a, supplier, progress=60, number="PO-2")
    assert store.get_project(a.id).progress == 40

    store.update_purchase_order(moving.id, {"projectId": b.id})

    assert store.get_project(a.id).progress == 20
    assert store.get_project(b.id).progress == 60


def test_po_progress_derived_from_parts(store):
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(
        store,
        project,
        supplier,
        parts=[
            {"name": "Servo Motor", "quantity": 2, "progress": 40},
            {"name": "Welding Gun", "quantity": 1, "progress": 81},
        ],
    )
    assert po.progress == 61
    assert all(p.id for p in po.parts)
    assert store.get_project(project.id).progress == 61


def test_explicit_po_progress_wins_over_parts(store):
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(
        store, project, supplier, progress=90,
        parts=[{"name": "Servo Motor", "quantity": 2, "progress": 10}],
    )
    assert po.progress == 90


def test_purchase_order_requires_existing_refs(store):
    project = make_project(store)
    supplier = make_supplier(store)
    with pytest.raises(NotFoundError):
        store.add_purchase_order({"poNumber": "PO-1", "projectId": "nope", "supplierId": supplier.id})
    with pytest.raises(NotFoundError):
        store.add_purchase_order({"poNumber": "PO-1", "projectId": project.id, "supplierId": "nope"})
    assert store.records("purchase_orders") == []


def test_delete_supplier_cascades_orders_and_nulls_links(store):
    project = make_project(store)
    supplier = make_supplier(store)
    other = make_supplier(store, name="Continental AG")
    po1 = make_po(store, project, supplier, progress=10, number="PO-1")
    make_po(store, project, supplier, progress=20, number="PO-2")
    kept_po = make_po(store, project, other, progress=90, number="PO-3")
    make_shipment(store, po1)
    link = store.add_external_link(
        {"projectId": project.id, "supplierId": supplier.id, "title": "Audit", "url": "https://a"}
    )

    store.delete_supplier(supplier.id)

    state = store.snapshot()
    assert [po.id for po in state.purchase_orders] == [kept_po.id]
    assert state.shipments == []
    assert [el.id for el in state.external_links] == [link.id]
    assert state.external_links[0].supplier_id is None
    assert store.get_project(project.id).progress == 90


def test_delete_purchase_order_nulls_link_po(store):
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(store, project, supplier)
    make_shipment(store, po)
    link = store.add_external_link(
        {"projectId": project.id, "poId": po.id, "type": "Tracking", "title": "T", "url": "https://t"}
    )

    store.delete_purchase_order(po.id)

    assert store.records("shipments") == []
    assert store.get_external_link(link.id).po_id is None


def test_shipment_part_must_belong_to_order(store):
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(store, project, supplier, number="PO-1")
    other_po = make_po(store, project, supplier, number="PO-2")

    with pytest.raises(ValidationError) as exc:
        make_shipment(store, po, part=other_po.parts[0])
    assert exc.value.field == "partId"
    assert store.records("shipments") == []


def test_shipment_order_must_match_project_and_supplier(store):
    project = make_project(store)
    other_project = make_project(store, name="Factory B")
    supplier = make_supplier(store)
    po = make_po(store, project, supplier)

    with pytest.raises(ValidationError) as exc:
        make_shipment(store, po, projectId=other_project.id)
    assert exc.value.field == "poId"


def test_ocean_shipment_needs_container(store):
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(store, project, supplier)

    with pytest.raises(ValidationError):
        make_shipment(store, po, type="Ocean Freight", trackingNumber=None)

    shipment = make_shipment(
        store, po, type="Ocean Freight", trackingNumber=None,
        containerNumber="MSCU1234567", containerSize="40ft", containerType="Dry",
    )
    assert store.get_shipment(shipment.id).container_number == "MSCU1234567"


def test_shipment_type_defaults_to_vocabulary(local, remote):
    store = DataStore(local, remote, vocabulary=get_vocabulary("mode"))
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(store, project, supplier)
    shipment = store.add_shipment(
        {
            "projectId": project.id,
            "supplierId": supplier.id,
            "poId": po.id,
            "partId": po.parts[0].id,
            "containerNumber": "MSCU1",
            "containerSize": "20ft",
            "containerType": "Dry",
        }
    )
    assert shipment.type == "Sea"
    with pytest.raises(ValidationError):
        make_shipment(store, po, type="Air Freight")


def test_removing_part_drops_its_shipments(store):
    project = make_project(store)
    supplier = make_supplier(store)
    po = make_po(
        store, project, supplier,
        parts=[{"name": "Servo Motor", "quantity": 1}, {"name": "Welding Gun", "quantity": 1}],
    )
    keep, drop = po.parts
    make_shipment(store, po, part=keep)
    make_shipment(store, po, part=drop)

    store.update_purchase_order(po.id, {"parts": [keep.to_dict()]})

    assert [s.part_id for s in store.records("shipments")] == [keep.id]


def test_shipments_follow_reparented_order(store):
    project = make_project(store)
    other_project = make_project(store, name="Factory B")
    supplier = make_supplier(store)
    po = make_po(store, project, supplier)
    shipment = make_shipment(store, po)

    store.update_purchase_order(po.id, {"projectId": other_project.id})

    assert store.get_shipment(shipment.id).project_id == other_project.id


def test_external_link_blank_refs_become_none(store):
    project = make_project(store)
    link = store.add_external_link(
        {"projectId": project.id, "supplierId": "", "poId": "", "title": "R", "url": "https://r"}
    )
    assert link.supplier_id is None and link.po_id is None
    with pytest.raises(NotFoundError):
        store.add_external_link(
            {"projectId": project.id, "supplierId": "nope", "title": "R", "url": "https://r"}
        )


def test_mutations_bump_version_and_mirror_locally(store, local):
    assert store.version == 0
    store.add_client({"name": "Tata Motors"})
    assert store.version == 1
    assert store.is_dirty
    assert [c.name for c in local.read().clients] == ["Tata Motors"]


def test_generate_sample_data_replaces_everything(store):
    store.add_client({"name": "Someone"})
    snapshot = store.generate_sample_data()
    assert "Someone" not in [c.name for c in snapshot.clients]
    assert all(v > 0 for v in snapshot.counts().values())


def test_clear_all_empties_store_and_local_blob(store, local):
    store.generate_sample_data()
    assert local.path.exists()

    store.clear_all()

    assert all(v == 0 for v in store.snapshot().counts().values())
    assert not local.path.exists()


def test_part_ids_are_unique_across_orders(store):
    project = make_project(store)
    supplier = make_supplier(store)
    first = make_po(store, project, supplier, number="PO-1", parts=[{"id": "part-1", "name": "Servo Motor"}])
    second = make_po(store, project, supplier, number="PO-2", parts=[])
    before = store.snapshot()

    with pytest.raises(ValidationError) as exc:
        make_po(store, project, supplier, number="PO-3", parts=[{"id": "part-1", "name": "Bolt"}])
    assert exc.value.field == "parts.id"
    with pytest.raises(ValidationError) as exc:
        store.update_purchase_order(second.id, {"parts": [{"id": "part-1", "name": "Bolt"}]})
    assert exc.value.field == "parts.id"
    assert store.snapshot() == before

    # the owning order may keep and rewrite its own part
    updated = store.update_purchase_order(first.id, {"parts": [{"id": "part-1", "name": "Servo Motor", "quantity": 3}]})
    assert updated.parts[0].quantity == 3

    store.remote.push_all(store.snapshot())
    pulled = store.remote.pull_all().snapshot
    owner = next(po for po in pulled.purchase_orders if po.id == first.id)
    assert owner.part_ids() == ["part-1"]


def test_part_payload_is_validated(store):
    project = make_project(store)
    supplier = make_supplier(store)
    with pytest.raises(ValidationError) as exc:
        make_po(store, project, supplier, parts=[{"name": "Bolt", "quantity": 0}])
    assert exc.value.field.startswith("parts.0")
    assert store.records("purchase_orders") == []
