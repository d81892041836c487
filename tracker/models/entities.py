# tracker/models/entities.py
"""
Local entity model.

Records are pydantic models with snake_case attributes. Their dict form
(`to_dict` / `from_dict`) uses the camelCase aliases of the local blob and of
the HTTP API, e.g. `project_manager` <-> `projectManager`.

Every way into a record goes through validation: payloads from the API, the
local blob and rows pulled from the remote store. Pydantic errors are turned
into a single tracker ValidationError naming the offending (camelCase) field.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, ClassVar, Dict, List, Optional, Type

from dateutil import parser as dateparser
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError as PydanticValidationError,
    create_model,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..errors import ValidationError


class WorkStatus(str, Enum):
    """Status shared by projects and parts."""
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    PENDING = "Pending"
    DELAYED = "Delayed"


class POStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    DELAYED = "Delayed"


class LinkType(str, Enum):
    REPORT = "Report"
    PHOTO = "Photo"
    TRACKING = "Tracking"


class FreightType(str, Enum):
    AIR = "Air Freight"
    OCEAN = "Ocean Freight"


class TransportMode(str, Enum):
    SEA = "Sea"
    AIR = "Air"
    LAND = "Land"


@dataclass(frozen=True)
class ShipmentVocabulary:
    """A closed set of shipment types plus the subset that travels by container."""

    name: str
    types: Type[Enum]
    ocean_types: frozenset

    def values(self) -> List[str]:
        return [t.value for t in self.types]

    def is_ocean(self, value: str) -> bool:
        return value in self.ocean_types

    @property
    def default(self) -> str:
        return next(iter(self.types)).value


SHIPMENT_VOCABULARIES: Dict[str, ShipmentVocabulary] = {
    "freight": ShipmentVocabulary("freight", FreightType, frozenset({FreightType.OCEAN.value})),
    "mode": ShipmentVocabulary("mode", TransportMode, frozenset({TransportMode.SEA.value})),
}

# values never overlap between vocabularies
SHIPMENT_TYPES = frozenset(t for v in SHIPMENT_VOCABULARIES.values() for t in v.values())
OCEAN_TYPES = frozenset().union(*(v.ocean_types for v in SHIPMENT_VOCABULARIES.values()))


def get_vocabulary(name: str) -> ShipmentVocabulary:
    try:
        return SHIPMENT_VOCABULARIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown shipment vocabulary '{name}', expected one of {sorted(SHIPMENT_VOCABULARIES)}"
        )


def new_id() -> str:
    return uuid.uuid4().hex


# ---------- field types ----------

def _iso_date(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        dateparser.isoparse(value)
    except (ValueError, OverflowError):
        raise ValueError(f"'{value}' is not an ISO date")
    return value


Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
IsoDate = Annotated[Optional[str], AfterValidator(_iso_date)]
Percent = Annotated[int, Field(strict=True, ge=0, le=100)]


def _shipment_type(value: str) -> str:
    if value not in SHIPMENT_TYPES:
        raise ValueError(f"must be one of {sorted(SHIPMENT_TYPES)}")
    return value


ShipmentType = Annotated[str, AfterValidator(_shipment_type)]


def _field_error(entity: str, exc: PydanticValidationError) -> ValidationError:
    err = exc.errors()[0]
    path = [str(p) for p in err["loc"]]
    cause = (err.get("ctx") or {}).get("error")
    if isinstance(cause, ValidationError):
        return ValidationError(".".join(path + [cause.field]), cause.message)
    return ValidationError(".".join(path) or entity, err["msg"])


# ---------- records ----------

RECORD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
    use_enum_values=True,
    validate_default=True,
)


class Record(BaseModel):
    """Common dict conversion and validation for all records."""
    model_config = RECORD_CONFIG

    ENTITY: ClassVar[str] = "record"

    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Any):
        return cls.validated(data)

    @classmethod
    def validated(cls, data: Any):
        """model_validate, raising the tracker ValidationError on failure."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise _field_error(cls.ENTITY, e) from None

    @classmethod
    def changes_from_payload(cls, payload: Any) -> Dict[str, Any]:
        """
        Translate a camelCase payload into attribute changes.

        Only supplied keys are returned. `id` is never taken from a payload;
        unknown keys are rejected.
        """
        try:
            parsed = payload_model(cls).model_validate(payload)
        except PydanticValidationError as e:
            raise _field_error(cls.ENTITY, e) from None
        changes = parsed.model_dump(exclude_unset=True)
        changes.pop("id", None)
        return changes

    def merged(self, changes: Dict[str, Any]):
        """A validated copy of this record with `changes` applied."""
        return type(self).validated({**self.model_dump(), **changes})


@lru_cache(maxsize=None)
def payload_model(record_type: Type[Record]) -> Type[BaseModel]:
    """
    Partial-update model for a record type: same fields and aliases, every
    field optional. Used for request bodies and for update payloads.
    """
    fields = {
        name: (Optional[info.annotation], None)
        for name, info in record_type.model_fields.items()
    }
    return create_model(f"{record_type.__name__}Payload", __config__=RECORD_CONFIG, **fields)


class Client(Record):
    ENTITY: ClassVar[str] = "client"

    name: Text
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class Project(Record):
    ENTITY: ClassVar[str] = "project"

    name: Text
    client_id: Optional[str] = None
    location: Optional[str] = None
    status: WorkStatus = WorkStatus.PENDING
    progress: Percent = 0
    start_date: IsoDate = None
    end_date: IsoDate = None
    project_manager: Optional[str] = None
    description: Optional[str] = None


class Supplier(Record):
    ENTITY: ClassVar[str] = "supplier"

    name: Text
    country: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    on_time_delivery: Optional[float] = Field(default=None, ge=0, le=100)
    location: Optional[str] = None
    positive_comments: List[str] = Field(default_factory=list)
    negative_comments: List[str] = Field(default_factory=list)

    @field_validator("positive_comments", "negative_comments", mode="before")
    @classmethod
    def _no_comments(cls, value):
        return [] if value is None else value


class Part(Record):
    ENTITY: ClassVar[str] = "part"

    name: Text
    quantity: int = Field(default=1, ge=1, strict=True)
    status: WorkStatus = WorkStatus.PENDING
    progress: Optional[Percent] = None


class PurchaseOrder(Record):
    ENTITY: ClassVar[str] = "purchase_order"

    po_number: Text
    project_id: Text
    supplier_id: Text
    status: POStatus = POStatus.ACTIVE
    deadline: IsoDate = None
    issued_date: IsoDate = None
    parts: List[Part] = Field(default_factory=list)
    progress: Optional[Percent] = None
    amount: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None

    @model_validator(mode="after")
    def _unique_parts(self):
        seen = set()
        for part in self.parts:
            if part.id and part.id in seen:
                raise ValidationError("parts.id", f"duplicate part id '{part.id}'")
            seen.add(part.id)
        return self

    def part_ids(self) -> List[str]:
        return [p.id for p in self.parts]


class Shipment(Record):
    ENTITY: ClassVar[str] = "shipment"

    project_id: Text
    supplier_id: Text
    po_id: Text
    part_id: Text
    type: ShipmentType
    shipped_date: IsoDate = None
    etd_date: IsoDate = None
    eta_date: IsoDate = None
    container_number: Optional[str] = None
    container_size: Optional[str] = None
    container_type: Optional[str] = None
    lock_number: Optional[str] = None
    tracking_number: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _mode_fields(self):
        if self.type in OCEAN_TYPES:
            required = ("container_number", "container_size", "container_type")
        else:
            required = ("tracking_number",)
        for name in required:
            value = getattr(self, name)
            if value is None or not value.strip():
                raise ValidationError(to_camel(name), "is required")
        return self

    def check_vocabulary(self, vocabulary: ShipmentVocabulary) -> None:
        if self.type not in vocabulary.values():
            raise ValidationError("type", f"must be one of {vocabulary.values()}")


class ExternalLink(Record):
    ENTITY: ClassVar[str] = "external_link"

    type: LinkType = LinkType.REPORT
    project_id: Text
    supplier_id: Optional[str] = None
    po_id: Optional[str] = None
    title: Text
    url: Text
    date: IsoDate = None


# ---------- snapshot ----------

# attribute name, blob key, record type
COLLECTIONS = (
    ("projects", "projects", Project),
    ("clients", "clients", Client),
    ("suppliers", "suppliers", Supplier),
    ("purchase_orders", "purchaseOrders", PurchaseOrder),
    ("external_links", "externalLinks", ExternalLink),
    ("shipments", "shipments", Shipment),
)

# blob keys that older blobs may lack
OPTIONAL_COLLECTIONS = {"shipments"}


class Snapshot(BaseModel):
    """All six collections, as one consistent unit."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    projects: List[Project] = Field(default_factory=list)
    clients: List[Client] = Field(default_factory=list)
    suppliers: List[Supplier] = Field(default_factory=list)
    purchase_orders: List[PurchaseOrder] = Field(default_factory=list)
    external_links: List[ExternalLink] = Field(default_factory=list)
    shipments: List[Shipment] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self):
        for attr, key, _ in COLLECTIONS:
            ids = [r.id for r in getattr(self, attr)]
            if len(ids) != len(set(ids)):
                raise ValidationError(f"{key}.id", "duplicate id")
        part_ids = [p.id for po in self.purchase_orders for p in po.parts]
        if len(part_ids) != len(set(part_ids)):
            raise ValidationError("purchaseOrders.parts.id", "part id used by more than one purchase order")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """
        Build a snapshot from the blob shape, validating every record.

        Raises ValidationError when the data is not a valid snapshot.
        """
        if not isinstance(data, dict):
            raise ValidationError("snapshot", "must be an object")
        for _, key, _ in COLLECTIONS:
            if key not in data and key not in OPTIONAL_COLLECTIONS:
                raise ValidationError(key, "is required")
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise _field_error("snapshot", e) from None

    def counts(self) -> Dict[str, int]:
        return {attr: len(getattr(self, attr)) for attr, _, _ in COLLECTIONS}
