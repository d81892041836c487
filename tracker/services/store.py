# tracker/services/store.py
"""
The data store: the one owner of every collection.

Each mutation validates its input, computes the cascade from the current
(pre-mutation) snapshot, builds the complete next snapshot and swaps it in
with a single assignment. Nothing is changed when a mutation raises.
After the swap the store bumps `version` and mirrors the snapshot to the
local blob.

Cascade rules:
  - project deleted   -> its purchase orders (with parts), external links and
                         shipments are deleted
  - client deleted    -> projects keep existing, client_id becomes None
  - supplier deleted  -> its purchase orders and shipments are deleted,
                         external links lose supplier_id
  - purchase order    -> its parts and shipments are deleted, external links
    deleted              lose po_id

Derived fields (see derivation.py):
  - project progress is recomputed on every purchase order add/update/delete
    (including cascaded deletes); never on update_project itself
  - purchase order progress is derived from its parts when parts are written
    and the progress is unset or zero

Part ids are unique across all purchase orders, since remote part rows are
keyed by id alone.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from ..config import Settings, settings as default_settings
from ..database import make_engine
from ..errors import NotFoundError, ValidationError
from ..models.entities import (
    COLLECTIONS,
    Client,
    ExternalLink,
    Part,
    Project,
    PurchaseOrder,
    Record,
    Shipment,
    ShipmentVocabulary,
    Snapshot,
    Supplier,
    get_vocabulary,
    new_id,
)
from ..seed_data import generate_sample_data
from .derivation import parts_progress, project_progress
from .local_store import LocalStore
from .remote_sync import RemoteSyncAdapter, SyncResult

logger = logging.getLogger(__name__)

COLLECTION_TYPES = {attr: record_type for attr, _, record_type in COLLECTIONS}


class LoadState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    LOADING = "LOADING"
    REMOTE_LOADED = "REMOTE_LOADED"
    LOCAL_LOADED = "LOCAL_LOADED"
    SEEDED_DUMMY = "SEEDED_DUMMY"
    READY = "READY"


def _with(state: Snapshot, **collections: List[Record]) -> Snapshot:
    return state.model_copy(update=collections)


def _without(records: Iterable[Record], ids: Set[str]) -> List[Record]:
    return [r for r in records if r.id not in ids]


def _null_refs(records: Iterable[Record], attr: str, ids: Set[str]) -> List[Record]:
    return [r.model_copy(update={attr: None}) if getattr(r, attr) in ids else r for r in records]


def _blank_to_none(changes: Dict[str, Any], *attrs: str) -> None:
    for attr in attrs:
        if attr in changes and changes[attr] == "":
            changes[attr] = None


class DataStore:
    def __init__(
        self,
        local: LocalStore,
        remote: RemoteSyncAdapter,
        vocabulary: Optional[ShipmentVocabulary] = None,
        write_through: bool = True,
    ):
        self.local = local
        self.remote = remote
        self.vocabulary = vocabulary or get_vocabulary("freight")
        # push to the remote store after every API mutation
        self.write_through = write_through

        self._state = Snapshot()
        self.version: int = 0
        self.synced_version: Optional[int] = None
        self.last_synced_at: Optional[datetime] = None
        self.syncs_in_flight: int = 0

        self.load_state: LoadState = LoadState.UNINITIALIZED
        self.load_source: Optional[LoadState] = None

    # ---------- read model ----------

    @property
    def is_loading(self) -> bool:
        return self.load_state == LoadState.LOADING

    @property
    def is_dirty(self) -> bool:
        return self.synced_version != self.version

    def snapshot(self) -> Snapshot:
        return self._state.model_copy(deep=True)

    def records(self, collection: str) -> List[Record]:
        if collection not in COLLECTION_TYPES:
            raise KeyError(collection)
        return [self._copy(r) for r in getattr(self._state, collection)]

    def get_project(self, project_id: str) -> Project:
        return self._copy(self._require("projects", project_id))

    def get_client(self, client_id: str) -> Client:
        return self._copy(self._require("clients", client_id))

    def get_supplier(self, supplier_id: str) -> Supplier:
        return self._copy(self._require("suppliers", supplier_id))

    def get_purchase_order(self, po_id: str) -> PurchaseOrder:
        return self._copy(self._require("purchase_orders", po_id))

    def get_shipment(self, shipment_id: str) -> Shipment:
        return self._copy(self._require("shipments", shipment_id))

    def get_external_link(self, link_id: str) -> ExternalLink:
        return self._copy(self._require("external_links", link_id))

    def status(self) -> Dict[str, Any]:
        return {
            "load_state": self.load_state.value,
            "load_source": self.load_source.value if self.load_source else None,
            "is_loading": self.is_loading,
            "version": self.version,
            "synced_version": self.synced_version,
            "is_dirty": self.is_dirty,
            "syncs_in_flight": self.syncs_in_flight,
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "shipment_vocabulary": self.vocabulary.name,
            "write_through": self.write_through,
            "counts": self._state.counts(),
        }

    # ---------- internals ----------

    @staticmethod
    def _copy(record: Record) -> Record:
        return record.model_copy(deep=True)

    def _find(self, collection: str, record_id: Optional[str]) -> Optional[Record]:
        for r in getattr(self._state, collection):
            if r.id == record_id:
                return r
        return None

    def _require(self, collection: str, record_id: Optional[str]) -> Record:
        record = self._find(collection, record_id)
        if record is None:
            raise NotFoundError(COLLECTION_TYPES[collection].ENTITY, record_id)
        return record

    def _commit(self, next_state: Snapshot, persist: bool = True) -> None:
        self._state = next_state
        self.version += 1
        if persist:
            try:
                self.local.save(self._state)
            except OSError:
                # in-memory state stays authoritative; the next commit retries
                logger.exception("Failed to mirror data to %s", self.local.path)

    def _replaced(self, collection: str, record: Record) -> List[Record]:
        return [record if r.id == record.id else r for r in getattr(self._state, collection)]

    def _recompute_projects(self, state: Snapshot, project_ids: Set[str]) -> Snapshot:
        projects = []
        for p in state.projects:
            if p.id in project_ids:
                derived = project_progress(p.id, state.purchase_orders)
                if derived is not None and derived != p.progress:
                    p = p.model_copy(update={"progress": derived})
            projects.append(p)
        return _with(state, projects=projects)

    def _normalize_parts(self, items: List[Dict[str, Any]], po_id: Optional[str]) -> List[Part]:
        """Give new parts an id and reject ids owned by another purchase order."""
        taken = {
            part.id
            for po in self._state.purchase_orders
            if po.id != po_id
            for part in po.parts
        }
        parts = []
        for item in items:
            part = Part.validated(item)
            if not part.id:
                part = part.model_copy(update={"id": new_id()})
            elif part.id in taken:
                raise ValidationError(
                    "parts.id", f"part id '{part.id}' belongs to another purchase order"
                )
            parts.append(part)
        return parts

    # ---------- clients ----------

    def add_client(self, payload: Dict[str, Any]) -> Client:
        client = Client.validated({**Client.changes_from_payload(payload), "id": new_id()})
        self._commit(_with(self._state, clients=self._state.clients + [client]))
        return self._copy(client)

    def update_client(self, client_id: str, payload: Dict[str, Any]) -> Client:
        current = self._require("clients", client_id)
        client = current.merged(Client.changes_from_payload(payload))
        self._commit(_with(self._state, clients=self._replaced("clients", client)))
        return self._copy(client)

    def delete_client(self, client_id: str) -> None:
        self._require("clients", client_id)
        state = self._state
        self._commit(
            _with(
                state,
                clients=_without(state.clients, {client_id}),
                projects=_null_refs(state.projects, "client_id", {client_id}),
            )
        )

    # ---------- projects ----------

    def _check_project_refs(self, project: Project) -> None:
        if project.client_id is not None:
            self._require("clients", project.client_id)

    def add_project(self, payload: Dict[str, Any]) -> Project:
        changes = Project.changes_from_payload(payload)
        _blank_to_none(changes, "client_id")
        project = Project.validated({**changes, "id": new_id()})
        self._check_project_refs(project)
        self._commit(_with(self._state, projects=self._state.projects + [project]))
        return self._copy(project)

    def update_project(self, project_id: str, payload: Dict[str, Any]) -> Project:
        current = self._require("projects", project_id)
        changes = Project.changes_from_payload(payload)
        _blank_to_none(changes, "client_id")
        project = current.merged(changes)
        self._check_project_refs(project)
        self._commit(_with(self._state, projects=self._replaced("projects", project)))
        return self._copy(project)

    def delete_project(self, project_id: str) -> None:
        self._require("projects", project_id)
        state = self._state
        po_ids = {po.id for po in state.purchase_orders if po.project_id == project_id}

        external_links = [el for el in state.external_links if el.project_id != project_id]
        self._commit(
            _with(
                state,
                projects=_without(state.projects, {project_id}),
                purchase_orders=_without(state.purchase_orders, po_ids),
                external_links=_null_refs(external_links, "po_id", po_ids),
                shipments=[
                    s for s in state.shipments
                    if s.project_id != project_id and s.po_id not in po_ids
                ],
            )
        )

    # ---------- suppliers ----------

    def add_supplier(self, payload: Dict[str, Any]) -> Supplier:
        supplier = Supplier.validated({**Supplier.changes_from_payload(payload), "id": new_id()})
        self._commit(_with(self._state, suppliers=self._state.suppliers + [supplier]))
        return self._copy(supplier)

    def update_supplier(self, supplier_id: str, payload: Dict[str, Any]) -> Supplier:
        current = self._require("suppliers", supplier_id)
        supplier = current.merged(Supplier.changes_from_payload(payload))
        self._commit(_with(self._state, suppliers=self._replaced("suppliers", supplier)))
        return self._copy(supplier)

    def delete_supplier(self, supplier_id: str) -> None:
        self._require("suppliers", supplier_id)
        state = self._state
        doomed = [po for po in state.purchase_orders if po.supplier_id == supplier_id]
        po_ids = {po.id for po in doomed}

        external_links = _null_refs(state.external_links, "supplier_id", {supplier_id})
        next_state = _with(
            state,
            suppliers=_without(state.suppliers, {supplier_id}),
            purchase_orders=_without(state.purchase_orders, po_ids),
            external_links=_null_refs(external_links, "po_id", po_ids),
            shipments=[
                s for s in state.shipments
                if s.supplier_id != supplier_id and s.po_id not in po_ids
            ],
        )
        next_state = self._recompute_projects(next_state, {po.project_id for po in doomed})
        self._commit(next_state)

    # ---------- purchase orders ----------

    def _check_po_refs(self, po: PurchaseOrder) -> None:
        self._require("projects", po.project_id)
        self._require("suppliers", po.supplier_id)

    def add_purchase_order(self, payload: Dict[str, Any]) -> PurchaseOrder:
        changes = PurchaseOrder.changes_from_payload(payload)
        if changes.get("parts") is not None:
            changes["parts"] = self._normalize_parts(changes["parts"], None)
        po = PurchaseOrder.validated({**changes, "id": new_id()})
        self._check_po_refs(po)
        if not po.progress and po.parts:
            po = po.model_copy(update={"progress": parts_progress(po.parts)})

        next_state = _with(self._state, purchase_orders=self._state.purchase_orders + [po])
        next_state = self._recompute_projects(next_state, {po.project_id})
        self._commit(next_state)
        return self._copy(po)

    def update_purchase_order(self, po_id: str, payload: Dict[str, Any]) -> PurchaseOrder:
        current = self._require("purchase_orders", po_id)
        changes = PurchaseOrder.changes_from_payload(payload)
        if changes.get("parts") is not None:
            changes["parts"] = self._normalize_parts(changes["parts"], po_id)
        po = current.merged(changes)
        self._check_po_refs(po)
        if "parts" in changes and not po.progress and po.parts:
            po = po.model_copy(update={"progress": parts_progress(po.parts)})

        state = self._state
        # shipments follow their purchase order; shipments of removed parts go away
        part_ids = set(po.part_ids())
        shipments = []
        for s in state.shipments:
            if s.po_id == po.id:
                if s.part_id not in part_ids:
                    continue
                if (s.project_id, s.supplier_id) != (po.project_id, po.supplier_id):
                    s = s.model_copy(update={"project_id": po.project_id, "supplier_id": po.supplier_id})
            shipments.append(s)

        next_state = _with(
            state,
            purchase_orders=self._replaced("purchase_orders", po),
            shipments=shipments,
        )
        next_state = self._recompute_projects(next_state, {current.project_id, po.project_id})
        self._commit(next_state)
        return self._copy(po)

    def delete_purchase_order(self, po_id: str) -> None:
        po = self._require("purchase_orders", po_id)
        state = self._state
        next_state = _with(
            state,
            purchase_orders=_without(state.purchase_orders, {po_id}),
            shipments=[s for s in state.shipments if s.po_id != po_id],
            external_links=_null_refs(state.external_links, "po_id", {po_id}),
        )
        next_state = self._recompute_projects(next_state, {po.project_id})
        self._commit(next_state)

    # ---------- shipments ----------

    def _check_shipment(self, shipment: Shipment) -> None:
        shipment.check_vocabulary(self.vocabulary)
        self._require("projects", shipment.project_id)
        self._require("suppliers", shipment.supplier_id)
        po = self._require("purchase_orders", shipment.po_id)
        if po.project_id != shipment.project_id:
            raise ValidationError("poId", "purchase order does not belong to the project")
        if po.supplier_id != shipment.supplier_id:
            raise ValidationError("poId", "purchase order is not with this supplier")
        if shipment.part_id not in po.part_ids():
            raise ValidationError("partId", "part does not belong to the purchase order")

    def add_shipment(self, payload: Dict[str, Any]) -> Shipment:
        changes = Shipment.changes_from_payload(payload)
        changes.setdefault("type", self.vocabulary.default)
        shipment = Shipment.validated({**changes, "id": new_id()})
        self._check_shipment(shipment)
        self._commit(_with(self._state, shipments=self._state.shipments + [shipment]))
        return self._copy(shipment)

    def update_shipment(self, shipment_id: str, payload: Dict[str, Any]) -> Shipment:
        current = self._require("shipments", shipment_id)
        shipment = current.merged(Shipment.changes_from_payload(payload))
        self._check_shipment(shipment)
        self._commit(_with(self._state, shipments=self._replaced("shipments", shipment)))
        return self._copy(shipment)

    def delete_shipment(self, shipment_id: str) -> None:
        self._require("shipments", shipment_id)
        self._commit(_with(self._state, shipments=_without(self._state.shipments, {shipment_id})))

    # ---------- external links ----------

    def _check_link_refs(self, link: ExternalLink) -> None:
        self._require("projects", link.project_id)
        if link.supplier_id is not None:
            self._require("suppliers", link.supplier_id)
        if link.po_id is not None:
            self._require("purchase_orders", link.po_id)

    def add_external_link(self, payload: Dict[str, Any]) -> ExternalLink:
        changes = ExternalLink.changes_from_payload(payload)
        _blank_to_none(changes, "supplier_id", "po_id")
        link = ExternalLink.validated({**changes, "id": new_id()})
        self._check_link_refs(link)
        self._commit(_with(self._state, external_links=self._state.external_links + [link]))
        return self._copy(link)

    def update_external_link(self, link_id: str, payload: Dict[str, Any]) -> ExternalLink:
        current = self._require("external_links", link_id)
        changes = ExternalLink.changes_from_payload(payload)
        _blank_to_none(changes, "supplier_id", "po_id")
        link = current.merged(changes)
        self._check_link_refs(link)
        self._commit(_with(self._state, external_links=self._replaced("external_links", link)))
        return self._copy(link)

    def delete_external_link(self, link_id: str) -> None:
        self._require("external_links", link_id)
        self._commit(
            _with(self._state, external_links=_without(self._state.external_links, {link_id}))
        )

    # ---------- whole-dataset operations ----------

    def generate_sample_data(self) -> Snapshot:
        self._commit(generate_sample_data(self.vocabulary))
        logger.info("Replaced data with sample dataset: %s", self._state.counts())
        return self.snapshot()

    def clear_all(self) -> None:
        self._commit(Snapshot(), persist=False)
        self.local.clear()
        logger.info("Cleared all data and the local mirror")

    async def sync_to_remote(self) -> SyncResult:
        """
        Push the current snapshot.

        The push is tagged with the version it was taken at. Its confirmation
        only marks the store as synced if no mutation happened meanwhile;
        otherwise it is stale and the next sync cycle covers the newer edits.
        """
        version = self.version
        snapshot = self.snapshot()
        self.syncs_in_flight += 1
        try:
            result = await asyncio.to_thread(self.remote.push_all, snapshot)
        finally:
            self.syncs_in_flight -= 1
        result.version = version

        if not result.success:
            logger.warning("Remote sync failed at step %s: %s", result.step, result.error)
            return result

        if version == self.version:
            self.synced_version = version
            self.last_synced_at = datetime.now(timezone.utc)
        else:
            result.stale = True
            logger.info(
                "Discarding stale sync confirmation for version %s (now %s)", version, self.version
            )
            if self.synced_version is not None and self.synced_version > version:
                # an older push landed after a newer one: remote may hold older data
                self.synced_version = None
        return result

    async def load_from_remote(self) -> SyncResult:
        """
        Replace local data with the remote snapshot.

        A pull that completes after a local mutation is discarded, so edits
        made while the pull was in flight are not clobbered.
        """
        version = self.version
        self.syncs_in_flight += 1
        try:
            result = await asyncio.to_thread(self.remote.pull_all)
        finally:
            self.syncs_in_flight -= 1

        if not result.success:
            result.version = version
            return result

        if version != self.version:
            logger.info("Discarding remote snapshot: local data changed while loading")
            return SyncResult(
                success=False,
                message="Local changes were made while loading; remote data was not applied",
                version=self.version,
                stale=True,
            )

        self._commit(result.snapshot)
        self.synced_version = self.version
        self.last_synced_at = datetime.now(timezone.utc)
        result.snapshot = None
        result.version = self.version
        return result

    async def initialize(self) -> LoadState:
        """
        Startup resolution: remote, then the local blob, then sample data.

        Always ends in READY with some valid snapshot.
        """
        self.load_state = LoadState.LOADING
        try:
            source = None
            if self.remote.enabled:
                result = await self.load_from_remote()
                if result.success:
                    source = LoadState.REMOTE_LOADED
                else:
                    logger.warning("Remote load failed (%s); trying local data", result.error or result.message)
            else:
                logger.info("Remote store disabled; trying local data")

            if source is None:
                local = self.local.load()
                if local is not None:
                    self._commit(local)
                    source = LoadState.LOCAL_LOADED
                else:
                    logger.warning("No usable local data; generating sample data")
                    self._commit(generate_sample_data(self.vocabulary))
                    source = LoadState.SEEDED_DUMMY

            self.load_source = source
            logger.info("Data store ready (%s): %s", source.value, self._state.counts())
        finally:
            self.load_state = LoadState.READY
        return self.load_source


# ---------- module-level instance ----------

_store: Optional[DataStore] = None


def build_store(config: Optional[Settings] = None) -> DataStore:
    """Wire a store from settings; an empty database URL leaves the remote disabled."""
    config = config or default_settings
    engine = make_engine(config.database_url) if config.remote_enabled else None
    return DataStore(
        local=LocalStore(config.local_data_dir, config.app_storage_key),
        remote=RemoteSyncAdapter(engine, prune=config.sync_prune_remote),
        vocabulary=get_vocabulary(config.shipment_vocabulary),
        write_through=config.write_through,
    )


def init_store(store: Optional[DataStore] = None) -> DataStore:
    global _store
    _store = store or build_store()
    return _store


def get_store() -> DataStore:
    if _store is None:
        raise RuntimeError("Data store is not initialized; call init_store() first")
    return _store


def close_store() -> None:
    global _store
    _store = None
