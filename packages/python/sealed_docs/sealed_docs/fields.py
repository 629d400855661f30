"""Generic read/write access to named fields of pydantic records."""

from __future__ import annotations

from typing import Any, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import FieldAccessError

RecordOrType = Union[BaseModel, Type[BaseModel]]


def _model_type(record: RecordOrType) -> type:
    return record if isinstance(record, type) else type(record)


def field_names(record: RecordOrType) -> Tuple[str, ...]:
    """Return the declared field names of a record or record type, in order."""

    model_type = _model_type(record)
    if not issubclass(model_type, BaseModel):
        return ()
    return tuple(model_type.model_fields)


def has_field(record: RecordOrType, name: str) -> bool:
    return name in field_names(record)


def get_field(record: BaseModel, name: str) -> Any:
    if not has_field(record, name):
        raise FieldAccessError(type(record).__name__, name, "no such field")
    return getattr(record, name)


def set_field(record: BaseModel, name: str, value: Any) -> None:
    """Assign ``value`` to ``record.name`` in place.

    The value is validated (and coerced) against the field's annotation using
    the model's own validator, so a wrongly typed value is rejected rather than
    silently stored.
    """

    record_type = type(record)
    if not has_field(record, name):
        raise FieldAccessError(record_type.__name__, name, "no such field")
    try:
        record_type.__pydantic_validator__.validate_assignment(record, name, value)
    except PydanticValidationError as exc:
        raise FieldAccessError(
            record_type.__name__, name, f"cannot assign {type(value).__name__}: {exc.errors()[0]['msg']}"
        ) from exc
