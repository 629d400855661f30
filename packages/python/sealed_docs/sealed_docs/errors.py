"""Error taxonomy for the document mapper."""

from __future__ import annotations

from typing import Iterable, List, Optional


class PreconditionFault(BaseException):
    """Raised when a record type cannot be persisted at all (no ``id`` field).

    This signals a defect in the record type definition. It derives from
    ``BaseException`` so a generic ``except Exception`` does not hide it.
    """


class MapperError(Exception):
    """Base class for recoverable mapper errors."""


class FieldAccessError(MapperError):
    """Raised when a named field cannot be read or written on a record."""

    def __init__(self, record_type: str, field: str, reason: str) -> None:
        super().__init__(f"{record_type}.{field}: {reason}")
        self.record_type = record_type
        self.field = field
        self.reason = reason


class ValidationError(MapperError):
    """Raised when a record's own validation reports violations."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("Validation failed: " + "; ".join(self.messages))


class EncryptionError(MapperError):
    """Raised when a field cannot be encrypted or decrypted."""


class UnsetIdentityError(MapperError):
    """Raised when an operation needs a persisted identity but the record has none."""


class StoreError(MapperError):
    """Raised for any failure surfaced by the document store."""

    def __init__(self, message: str, *, collection: Optional[str] = None) -> None:
        super().__init__(message)
        self.collection = collection


class DocumentNotFoundError(StoreError):
    """Raised when no document matches the requested identity."""
