# tracker/errors.py
"""
Error taxonomy for the tracker core.

ValidationError and NotFoundError are raised synchronously by store
mutations before any state changes. RemoteUnavailableError never escapes the
sync adapter: it is captured into a SyncResult. PersistenceCorruptError is
raised while reading the local blob and is treated as "no blob".
"""

from typing import Optional


class TrackerError(Exception):
    """Base class for all tracker errors."""


class ValidationError(TrackerError, ValueError):
    """
    A field failed validation.

    Also a ValueError, so pydantic validators may raise it and keep the field
    name in the error context.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class NotFoundError(TrackerError):
    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")

    def to_dict(self) -> dict:
        return {"entity": self.entity, "id": self.entity_id, "message": str(self)}


class RemoteUnavailableError(TrackerError):
    """Remote store unreachable, misconfigured or rejecting a write."""

    def __init__(self, message: str, step: Optional[str] = None):
        self.step = step
        super().__init__(message)


class PersistenceCorruptError(TrackerError):
    """Local blob exists but cannot be parsed into a snapshot."""
