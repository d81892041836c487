# tracker/services/remote_sync.py
"""
Remote sync adapter: push the whole local snapshot to the relational store,
or pull the whole store back as a snapshot.

Push order follows the remote foreign keys (parents before children):

    clients -> projects -> suppliers -> purchase_orders -> parts
            -> external_links -> shipments

Each step commits on its own. A failing step aborts the remaining ones and is
named in the result; steps already committed are not rolled back. When
pruning is enabled, rows missing from the snapshot are deleted afterwards in
the reverse order, so local deletions reach the remote store too.

Nothing in here raises on remote failure: errors are captured into a
SyncResult so callers can branch on `result.success`. Pulled rows are
validated like any other input; invalid remote data fails the pull at the
"validate" step.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..errors import RemoteUnavailableError, ValidationError
from ..models.entities import Snapshot
from ..models.remote import (
    ClientRow,
    ExternalLinkRow,
    PartRow,
    ProjectRow,
    PurchaseOrderRow,
    ShipmentRow,
    SupplierRow,
)
from . import mapping

logger = logging.getLogger(__name__)

# tables a pull tolerates being absent (not provisioned yet)
OPTIONAL_TABLES = {ShipmentRow.__tablename__}

STEP_LABELS = {
    "connect": "connect to remote store",
    "clients": "clients",
    "projects": "projects",
    "suppliers": "suppliers",
    "purchase_orders": "purchase orders",
    "parts": "parts",
    "external_links": "external links",
    "shipments": "shipments",
}


@dataclass
class SyncResult:
    success: bool
    message: str
    error: Optional[str] = None
    step: Optional[str] = None
    upserted: Dict[str, int] = field(default_factory=dict)
    deleted: Dict[str, int] = field(default_factory=dict)
    snapshot: Optional[Snapshot] = None
    # store version the result refers to (set by the store, not the adapter)
    version: Optional[int] = None
    stale: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "error": self.error,
            "step": self.step,
            "upserted": dict(self.upserted),
            "deleted": dict(self.deleted),
            "version": self.version,
            "stale": self.stale,
        }


def _failure(message: str, exc: Exception, step: Optional[str], **kwargs) -> SyncResult:
    return SyncResult(success=False, message=message, error=str(exc), step=step, **kwargs)


class RemoteSyncAdapter:
    def __init__(self, engine: Optional[Engine], prune: bool = True):
        self.engine = engine
        self.prune = prune

    @property
    def enabled(self) -> bool:
        return self.engine is not None

    def create_tables(self) -> None:
        """Provision every remote table that does not exist yet."""
        if self.engine is None:
            return
        SQLModel.metadata.create_all(self.engine)

    # ---------- push ----------

    def _plan(self, snapshot: Snapshot) -> List[Tuple[str, Type[SQLModel], List[SQLModel]]]:
        return [
            ("clients", ClientRow, [mapping.client_to_row(c) for c in snapshot.clients]),
            ("projects", ProjectRow, [mapping.project_to_row(p) for p in snapshot.projects]),
            ("suppliers", SupplierRow, [mapping.supplier_to_row(s) for s in snapshot.suppliers]),
            (
                "purchase_orders",
                PurchaseOrderRow,
                [mapping.purchase_order_to_row(po) for po in snapshot.purchase_orders],
            ),
            ("parts", PartRow, mapping.parts_to_rows(snapshot.purchase_orders)),
            (
                "external_links",
                ExternalLinkRow,
                [mapping.external_link_to_row(el) for el in snapshot.external_links],
            ),
            ("shipments", ShipmentRow, [mapping.shipment_to_row(s) for s in snapshot.shipments]),
        ]

    def _run_step(self, step: str, work: Callable[[Session], int]) -> int:
        try:
            with Session(self.engine) as session:
                count = work(session)
                session.commit()
                return count
        except SQLAlchemyError as e:
            raise RemoteUnavailableError(str(e), step=step) from e

    def push_all(self, snapshot: Snapshot) -> SyncResult:
        """Upsert every collection (conflict key: id), then prune if enabled."""
        if self.engine is None:
            return _failure(
                "Remote store is not configured",
                RemoteUnavailableError("DATABASE_URL is empty"),
                "connect",
            )

        plan = self._plan(snapshot)
        upserted: Dict[str, int] = {}
        deleted: Dict[str, int] = {}

        for step, _row_type, rows in plan:
            def upsert(session: Session, rows=rows) -> int:
                for row in rows:
                    session.merge(row)
                return len(rows)

            try:
                upserted[step] = self._run_step(step, upsert)
            except RemoteUnavailableError as e:
                logger.error("Failed to sync %s: %s", STEP_LABELS[step], e)
                return _failure(f"Failed to sync {STEP_LABELS[step]}", e, step, upserted=upserted)

        if self.prune:
            for step, row_type, rows in reversed(plan):
                keep = {row.id for row in rows}

                def prune(session: Session, row_type=row_type, keep=keep) -> int:
                    stale = [r for r in session.exec(select(row_type)).all() if r.id not in keep]
                    for r in stale:
                        session.delete(r)
                    return len(stale)

                prune_step = f"prune_{step}"
                try:
                    deleted[step] = self._run_step(prune_step, prune)
                except RemoteUnavailableError as e:
                    logger.error("Failed to prune remote %s: %s", STEP_LABELS[step], e)
                    return _failure(
                        f"Failed to prune remote {STEP_LABELS[step]}",
                        e,
                        prune_step,
                        upserted=upserted,
                        deleted=deleted,
                    )

        logger.info(
            "Pushed snapshot to remote: %s upserted, %s pruned",
            sum(upserted.values()),
            sum(deleted.values()),
        )
        return SyncResult(
            success=True,
            message="All data synchronized successfully",
            upserted=upserted,
            deleted=deleted,
        )

    # ---------- pull ----------

    def _load_table(self, session: Session, row_type: Type[SQLModel]) -> List[Any]:
        table = row_type.__tablename__
        if table in OPTIONAL_TABLES and not inspect(session.get_bind()).has_table(table):
            logger.warning("Remote table '%s' is missing; treating it as empty", table)
            return []
        return list(session.exec(select(row_type)).all())

    def pull_all(self) -> SyncResult:
        """
        Load all tables independently, re-attach parts to their purchase
        order by po_id and translate everything back to local records.
        """
        if self.engine is None:
            return _failure(
                "Remote store is not configured",
                RemoteUnavailableError("DATABASE_URL is empty"),
                "connect",
            )

        try:
            with Session(self.engine) as session:
                clients = self._load_table(session, ClientRow)
                projects = self._load_table(session, ProjectRow)
                suppliers = self._load_table(session, SupplierRow)
                purchase_orders = self._load_table(session, PurchaseOrderRow)
                parts = self._load_table(session, PartRow)
                external_links = self._load_table(session, ExternalLinkRow)
                shipments = self._load_table(session, ShipmentRow)
        except SQLAlchemyError as e:
            logger.error("Failed to load data from remote store: %s", e)
            return _failure("Failed to load data from remote store", e, "load")

        try:
            parts_by_po = mapping.group_parts_by_po(parts)
            snapshot = Snapshot(
                projects=[mapping.project_from_row(r) for r in projects],
                clients=[mapping.client_from_row(r) for r in clients],
                suppliers=[mapping.supplier_from_row(r) for r in suppliers],
                purchase_orders=[
                    mapping.purchase_order_from_row(r, parts_by_po.get(r.id, []))
                    for r in purchase_orders
                ],
                external_links=[mapping.external_link_from_row(r) for r in external_links],
                shipments=[mapping.shipment_from_row(r) for r in shipments],
            )
        except (PydanticValidationError, ValidationError) as e:
            logger.error("Remote data failed validation: %s", e)
            return _failure("Remote data failed validation", e, "validate")

        logger.info("Loaded snapshot from remote: %s", snapshot.counts())
        return SyncResult(
            success=True,
            message="Data loaded from remote store",
            snapshot=snapshot,
        )
