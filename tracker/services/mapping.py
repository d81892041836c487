# tracker/services/mapping.py
"""
Pure local <-> remote translation.

Local records serialize to the camelCase names of the blob (projectManager,
onTimeDelivery, poNumber, ...); remote rows carry snake_case columns
(project_manager, on_time_delivery, po_number, ...). Each pair of functions
below translates one entity in one direction and nothing else: no I/O, no
session handling.

Pull-side defaults for columns a remote row may leave empty:
  - project status -> Pending, project progress -> 0, client_id -> None
  - supplier comment lists -> []
  - part status -> Pending
"""

from typing import Dict, List

from ..models.entities import (
    Client,
    ExternalLink,
    Part,
    POStatus,
    Project,
    PurchaseOrder,
    Shipment,
    Supplier,
    WorkStatus,
)
from ..models.remote import (
    ClientRow,
    ExternalLinkRow,
    PartRow,
    ProjectRow,
    PurchaseOrderRow,
    ShipmentRow,
    SupplierRow,
)


# ---------- clients ----------

def client_to_row(c: Client) -> ClientRow:
    return ClientRow(
        id=c.id,
        name=c.name,
        contact_person=c.contact_person,
        email=c.email,
        phone=c.phone,
        location=c.location,
    )


def client_from_row(r: ClientRow) -> Client:
    return Client(
        id=r.id,
        name=r.name,
        contact_person=r.contact_person,
        email=r.email,
        phone=r.phone,
        location=r.location,
    )


# ---------- projects ----------

def project_to_row(p: Project) -> ProjectRow:
    return ProjectRow(
        id=p.id,
        name=p.name,
        client_id=p.client_id or None,
        location=p.location,
        status=p.status,
        progress=p.progress,
        start_date=p.start_date,
        end_date=p.end_date,
        project_manager=p.project_manager,
        description=p.description,
    )


def project_from_row(r: ProjectRow) -> Project:
    return Project(
        id=r.id,
        name=r.name,
        client_id=r.client_id or None,
        location=r.location,
        status=r.status or WorkStatus.PENDING.value,
        progress=r.progress or 0,
        start_date=r.start_date,
        end_date=r.end_date,
        project_manager=r.project_manager,
        description=r.description,
    )


# ---------- suppliers ----------

def supplier_to_row(s: Supplier) -> SupplierRow:
    return SupplierRow(
        id=s.id,
        name=s.name,
        country=s.country,
        contact_person=s.contact_person,
        email=s.email,
        phone=s.phone,
        rating=s.rating,
        on_time_delivery=s.on_time_delivery,
        location=s.location,
        positive_comments=list(s.positive_comments or []),
        negative_comments=list(s.negative_comments or []),
    )


def supplier_from_row(r: SupplierRow) -> Supplier:
    return Supplier(
        id=r.id,
        name=r.name,
        country=r.country,
        contact_person=r.contact_person,
        email=r.email,
        phone=r.phone,
        rating=r.rating,
        on_time_delivery=r.on_time_delivery,
        location=r.location,
        positive_comments=list(r.positive_comments or []),
        negative_comments=list(r.negative_comments or []),
    )


# ---------- purchase orders & parts ----------

def purchase_order_to_row(po: PurchaseOrder) -> PurchaseOrderRow:
    """Parts are not embedded; see parts_to_rows()."""
    return PurchaseOrderRow(
        id=po.id,
        po_number=po.po_number,
        project_id=po.project_id,
        supplier_id=po.supplier_id,
        status=po.status,
        deadline=po.deadline,
        issued_date=po.issued_date,
        progress=po.progress,
        amount=po.amount,
        description=po.description,
    )


def parts_to_rows(purchase_orders: List[PurchaseOrder]) -> List[PartRow]:
    """Flatten every purchase order's parts, tagging each with its parent id."""
    rows: List[PartRow] = []
    for po in purchase_orders:
        for position, part in enumerate(po.parts):
            rows.append(
                PartRow(
                    id=part.id,
                    po_id=po.id,
                    position=position,
                    name=part.name,
                    quantity=part.quantity,
                    status=part.status,
                    progress=part.progress,
                )
            )
    return rows


def part_from_row(r: PartRow) -> Part:
    return Part(
        id=r.id,
        name=r.name,
        quantity=r.quantity,
        status=r.status or WorkStatus.PENDING.value,
        progress=r.progress,
    )


def purchase_order_from_row(r: PurchaseOrderRow, parts: List[PartRow]) -> PurchaseOrder:
    ordered = sorted(parts, key=lambda p: p.position)
    return PurchaseOrder(
        id=r.id,
        po_number=r.po_number,
        project_id=r.project_id,
        supplier_id=r.supplier_id,
        status=r.status or POStatus.ACTIVE.value,
        deadline=r.deadline,
        issued_date=r.issued_date,
        parts=[part_from_row(p) for p in ordered],
        progress=r.progress,
        amount=r.amount,
        description=r.description,
    )


def group_parts_by_po(parts: List[PartRow]) -> Dict[str, List[PartRow]]:
    grouped: Dict[str, List[PartRow]] = {}
    for p in parts:
        grouped.setdefault(p.po_id, []).append(p)
    return grouped


# ---------- external links ----------

def external_link_to_row(el: ExternalLink) -> ExternalLinkRow:
    return ExternalLinkRow(
        id=el.id,
        type=el.type,
        project_id=el.project_id,
        supplier_id=el.supplier_id or None,
        po_id=el.po_id or None,
        title=el.title,
        url=el.url,
        date=el.date,
    )


def external_link_from_row(r: ExternalLinkRow) -> ExternalLink:
    return ExternalLink(
        id=r.id,
        type=r.type,
        project_id=r.project_id,
        supplier_id=r.supplier_id,
        po_id=r.po_id,
        title=r.title,
        url=r.url,
        date=r.date,
    )


# ---------- shipments ----------

def shipment_to_row(s: Shipment) -> ShipmentRow:
    return ShipmentRow(
        id=s.id,
        project_id=s.project_id,
        supplier_id=s.supplier_id,
        po_id=s.po_id,
        part_id=s.part_id,
        type=s.type,
        shipped_date=s.shipped_date,
        etd_date=s.etd_date,
        eta_date=s.eta_date,
        container_number=s.container_number,
        container_size=s.container_size,
        container_type=s.container_type,
        lock_number=s.lock_number,
        tracking_number=s.tracking_number,
        status=s.status,
        notes=s.notes,
    )


def shipment_from_row(r: ShipmentRow) -> Shipment:
    return Shipment(
        id=r.id,
        project_id=r.project_id,
        supplier_id=r.supplier_id,
        po_id=r.po_id,
        part_id=r.part_id,
        type=r.type,
        shipped_date=r.shipped_date,
        etd_date=r.etd_date,
        eta_date=r.eta_date,
        container_number=r.container_number,
        container_size=r.container_size,
        container_type=r.container_type,
        lock_number=r.lock_number,
        tracking_number=r.tracking_number,
        status=r.status,
        notes=r.notes,
    )
