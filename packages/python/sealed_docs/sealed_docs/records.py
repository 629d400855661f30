"""Record base class, capability protocols and per-type adapters.

A record type opts into lifecycle behaviour by implementing one of the
protocols below. Capabilities and sensitive fields are resolved once per type
by :func:`adapter_for` and cached for the lifetime of the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, FrozenSet, List, Optional, Protocol, Tuple, Type, runtime_checkable

from bson import ObjectId
from loguru import logger
from pydantic import BaseModel, ConfigDict

from .errors import PreconditionFault
from .fields import field_names, get_field, set_field
from .naming import collection_name_of

IDENTITY_FIELD = "id"
DOCUMENT_ID = "_id"


class Sensitive:
    """Annotation marker for fields that are encrypted before they are stored.

    Example::

        class Patient(Record):
            name: str
            ssn: Annotated[str, Sensitive()]
    """

    def __repr__(self) -> str:
        return "Sensitive()"


class Record(BaseModel):
    """Convenience base class declaring the identity field."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: Optional[ObjectId] = None


@runtime_checkable
class Validatable(Protocol):
    def validate_record(self) -> List[str]:  # pragma: no cover - structural typing only
        ...


@runtime_checkable
class CreateHookable(Protocol):
    def before_create(self) -> None:  # pragma: no cover - structural typing only
        ...


@runtime_checkable
class UpdateHookable(Protocol):
    def before_update(self) -> None:  # pragma: no cover - structural typing only
        ...


@runtime_checkable
class SaveHookable(Protocol):
    def before_save(self) -> None:  # pragma: no cover - structural typing only
        ...


@runtime_checkable
class FindHookable(Protocol):
    def after_find(self) -> None:  # pragma: no cover - structural typing only
        ...


def is_unset_identity(value: Any) -> bool:
    return not isinstance(value, ObjectId)


@dataclass(frozen=True)
class RecordAdapter:
    """Everything the mapper needs to know about one record type."""

    record_type: Type[BaseModel]
    collection: str
    fields: Tuple[str, ...]
    sensitive_fields: FrozenSet[str]
    validatable: bool
    creates: bool
    updates: bool
    saves: bool
    finds: bool

    def get_id(self, record: BaseModel) -> Any:
        return get_field(record, IDENTITY_FIELD)

    def set_id(self, record: BaseModel, identity: ObjectId) -> None:
        set_field(record, IDENTITY_FIELD, identity)

    def is_sensitive(self, name: str) -> bool:
        return name in self.sensitive_fields

    def run_validation(self, record: BaseModel) -> List[str]:
        if not self.validatable:
            return []
        return list(record.validate_record() or [])

    def run_before_hooks(self, record: BaseModel, is_new: bool) -> None:
        if is_new:
            if self.creates:
                record.before_create()
        elif self.updates:
            record.before_update()
        if self.saves:
            record.before_save()

    def run_after_find(self, record: BaseModel) -> None:
        if self.finds:
            record.after_find()


def sensitive_fields_of(record_type: Type[BaseModel]) -> FrozenSet[str]:
    return frozenset(
        name
        for name, info in record_type.model_fields.items()
        if any(isinstance(item, Sensitive) for item in info.metadata)
    )


@lru_cache(maxsize=None)
def adapter_for(record_type: Type[BaseModel]) -> RecordAdapter:
    """Build (once) the adapter for ``record_type``.

    Raises :class:`PreconditionFault` when the type is not a pydantic model or
    declares no ``id`` field.
    """

    if not (isinstance(record_type, type) and issubclass(record_type, BaseModel)):
        logger.critical("Refusing to map {record_type}: not a pydantic model", record_type=record_type)
        raise PreconditionFault(f"{record_type!r} is not a pydantic model")

    fields = field_names(record_type)
    if IDENTITY_FIELD not in fields:
        logger.critical(
            "Refusing to map {name}: model must have an '{field}' field",
            name=record_type.__name__,
            field=IDENTITY_FIELD,
        )
        raise PreconditionFault(f"{record_type.__name__} must have an '{IDENTITY_FIELD}' field")

    sensitive = sensitive_fields_of(record_type)
    if IDENTITY_FIELD in sensitive:
        raise PreconditionFault(f"{record_type.__name__}.{IDENTITY_FIELD} cannot be sensitive")

    adapter = RecordAdapter(
        record_type=record_type,
        collection=collection_name_of(record_type),
        fields=fields,
        sensitive_fields=sensitive,
        validatable=issubclass(record_type, Validatable),
        creates=issubclass(record_type, CreateHookable),
        updates=issubclass(record_type, UpdateHookable),
        saves=issubclass(record_type, SaveHookable),
        finds=issubclass(record_type, FindHookable),
    )
    logger.debug(
        "Registered {name} -> collection {collection} (sensitive={sensitive})",
        name=record_type.__name__,
        collection=adapter.collection,
        sensitive=sorted(sensitive),
    )
    return adapter
