"""Typed records on MongoDB with transparent field-level encryption.

Example usage:

    from typing import Annotated
    from sealed_docs import Record, Sensitive, connect

    class Patient(Record):
        name: str
        ssn: Annotated[str, Sensitive()]

    mapper = connect()
    patient = Patient(name="Ada", ssn="123-45-6789")
    mapper.save(patient)
    loaded = mapper.get(Patient, patient.id)
"""

from .codec import decode_document, encode_document
from .errors import (
    DocumentNotFoundError,
    EncryptionError,
    FieldAccessError,
    MapperError,
    PreconditionFault,
    StoreError,
    UnsetIdentityError,
    ValidationError,
)
from .fields import get_field, has_field, set_field
from .keys import KeyResolver
from .mapper import DocumentMapper, connect
from .mongo import MongoGateway
from .naming import collection_name_of, to_snake
from .records import (
    CreateHookable,
    FindHookable,
    Record,
    RecordAdapter,
    SaveHookable,
    Sensitive,
    UpdateHookable,
    Validatable,
    adapter_for,
)
from .settings import MapperSettings, get_settings
from .typing import Document, StoreGateway

__all__ = [
    "connect",
    "DocumentMapper",
    "MongoGateway",
    "StoreGateway",
    "Document",
    "KeyResolver",
    "MapperSettings",
    "get_settings",
    "Record",
    "RecordAdapter",
    "Sensitive",
    "Validatable",
    "CreateHookable",
    "UpdateHookable",
    "SaveHookable",
    "FindHookable",
    "adapter_for",
    "encode_document",
    "decode_document",
    "has_field",
    "get_field",
    "set_field",
    "to_snake",
    "collection_name_of",
    "MapperError",
    "PreconditionFault",
    "FieldAccessError",
    "ValidationError",
    "EncryptionError",
    "StoreError",
    "DocumentNotFoundError",
    "UnsetIdentityError",
]
