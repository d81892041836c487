# tracker/models/remote.py
"""
Remote table model: one SQLModel transfer object per remote table.

Column names are snake_case; every table is keyed by a string `id`.
Optional relationships use nullable foreign keys.
"""

from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class ClientRow(SQLModel, table=True):
    __tablename__ = "clients"

    id: str = Field(primary_key=True)
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class ProjectRow(SQLModel, table=True):
    __tablename__ = "projects"

    id: str = Field(primary_key=True)
    name: str
    client_id: Optional[str] = Field(default=None, foreign_key="clients.id")
    location: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    project_manager: Optional[str] = None
    description: Optional[str] = None


class SupplierRow(SQLModel, table=True):
    __tablename__ = "suppliers"

    id: str = Field(primary_key=True)
    name: str
    country: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    on_time_delivery: Optional[float] = None
    location: Optional[str] = None
    positive_comments: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    negative_comments: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))


class PurchaseOrderRow(SQLModel, table=True):
    __tablename__ = "purchase_orders"

    id: str = Field(primary_key=True)
    po_number: str
    project_id: str = Field(foreign_key="projects.id")
    supplier_id: str = Field(foreign_key="suppliers.id")
    status: Optional[str] = None
    deadline: Optional[str] = None
    issued_date: Optional[str] = None
    progress: Optional[int] = None
    amount: Optional[float] = None
    description: Optional[str] = None


class PartRow(SQLModel, table=True):
    __tablename__ = "parts"

    id: str = Field(primary_key=True)
    po_id: str = Field(foreign_key="purchase_orders.id", index=True)
    # position inside the owning purchase order
    position: int = 0
    name: str
    quantity: int
    status: Optional[str] = None
    progress: Optional[int] = None


class ExternalLinkRow(SQLModel, table=True):
    __tablename__ = "external_links"

    id: str = Field(primary_key=True)
    type: str
    project_id: str = Field(foreign_key="projects.id")
    supplier_id: Optional[str] = Field(default=None, foreign_key="suppliers.id")
    po_id: Optional[str] = Field(default=None, foreign_key="purchase_orders.id")
    title: str
    url: str
    date: Optional[str] = None


class ShipmentRow(SQLModel, table=True):
    __tablename__ = "shipments"

    id: str = Field(primary_key=True)
    project_id: str = Field(foreign_key="projects.id")
    supplier_id: str = Field(foreign_key="suppliers.id")
    po_id: str = Field(foreign_key="purchase_orders.id")
    part_id: str = Field(foreign_key="parts.id")
    type: str
    shipped_date: Optional[str] = None
    etd_date: Optional[str] = None
    eta_date: Optional[str] = None
    container_number: Optional[str] = None
    container_size: Optional[str] = None
    container_type: Optional[str] = None
    lock_number: Optional[str] = None
    tracking_number: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
