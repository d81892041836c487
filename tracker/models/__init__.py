from .entities import (
    Client,
    Project,
    Supplier,
    Part,
    PurchaseOrder,
    Shipment,
    ExternalLink,
    Snapshot,
    WorkStatus,
    POStatus,
    LinkType,
    FreightType,
    TransportMode,
)
from .remote import (
    ClientRow,
    ProjectRow,
    SupplierRow,
    PurchaseOrderRow,
    PartRow,
    ExternalLinkRow,
    ShipmentRow,
)

__all__ = [
    "Client",
    "Project",
    "Supplier",
    "Part",
    "PurchaseOrder",
    "Shipment",
    "ExternalLink",
    "Snapshot",
    "WorkStatus",
    "POStatus",
    "LinkType",
    "FreightType",
    "TransportMode",
    "ClientRow",
    "ProjectRow",
    "SupplierRow",
    "PurchaseOrderRow",
    "PartRow",
    "ExternalLinkRow",
    "ShipmentRow",
]
