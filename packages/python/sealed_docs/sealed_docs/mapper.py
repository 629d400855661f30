"""Lifecycle mapper: save, find and delete records through a store gateway.

Every save runs the same fixed sequence regardless of the record type:

1. resolve the type's adapter (fatal if the type has no ``id`` field)
2. mint an identity if the record has none
3. run the record's own validation, aborting on any message
4. run ``before_create`` or ``before_update``, then ``before_save``
5. encode the record, encrypting sensitive fields with the collection key
6. upsert the document by ``_id``
"""

from __future__ import annotations

import time
from typing import Optional, Type, TypeVar

from bson import ObjectId
from loguru import logger
from pydantic import BaseModel

from .codec import decode_document, encode_document
from .errors import UnsetIdentityError, ValidationError
from .keys import KeyResolver
from .mongo import MongoGateway
from .records import DOCUMENT_ID, adapter_for, is_unset_identity
from .settings import MapperSettings, get_settings
from .typing import StoreGateway

RecordT = TypeVar("RecordT", bound=BaseModel)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class DocumentMapper:
    """Maps records onto a document store, encrypting sensitive fields."""

    def __init__(self, gateway: StoreGateway, keys: KeyResolver):
        self.gateway = gateway
        self.keys = keys

    def key_for(self, collection: str) -> bytes:
        return self.keys.key_for(collection)

    # ---------------------------------------------------------
    # SAVE
    # ---------------------------------------------------------
    def save(self, record: BaseModel) -> ObjectId:
        """Create or update ``record`` and return its identity.

        Raises :class:`ValidationError` when the record's ``validate_record``
        reports problems (nothing is persisted and no hook runs) and
        :class:`StoreError` when the store rejects the write.
        """

        adapter = adapter_for(type(record))
        start = time.perf_counter()

        is_new = is_unset_identity(adapter.get_id(record))
        if is_new:
            adapter.set_id(record, ObjectId())

        messages = adapter.run_validation(record)
        if messages:
            logger.debug(
                "Save {collection}/{identity} rejected by validation: {messages}",
                collection=adapter.collection,
                identity=adapter.get_id(record),
                messages=messages,
            )
            raise ValidationError(messages)

        adapter.run_before_hooks(record, is_new)

        document = encode_document(self.key_for(adapter.collection), record)
        identity = document[DOCUMENT_ID]
        self.gateway.upsert_by_id(adapter.collection, identity, document)

        logger.debug(
            "Saved {collection}/{identity} ({state}) in {duration:.2f} ms",
            collection=adapter.collection,
            identity=identity,
            state="new" if is_new else "existing",
            duration=_elapsed_ms(start),
        )
        return identity

    # ---------------------------------------------------------
    # FIND
    # ---------------------------------------------------------
    def find_by_id(self, identity: ObjectId, record: RecordT) -> RecordT:
        """Load the document ``identity`` into ``record`` and return it.

        Store failures, including a missing document, raise
        :class:`StoreError` and leave ``record`` untouched.
        """

        adapter = adapter_for(type(record))
        start = time.perf_counter()

        document = self.gateway.find_by_id(adapter.collection, identity)
        decode_document(self.key_for(adapter.collection), document, record)
        adapter.run_after_find(record)

        logger.debug(
            "Loaded {collection}/{identity} in {duration:.2f} ms",
            collection=adapter.collection,
            identity=identity,
            duration=_elapsed_ms(start),
        )
        return record

    def get(self, record_type: Type[RecordT], identity: ObjectId) -> RecordT:
        """Find ``identity`` into a fresh, unvalidated instance of ``record_type``."""

        adapter_for(record_type)
        return self.find_by_id(identity, record_type.model_construct())

    # ---------------------------------------------------------
    # DELETE
    # ---------------------------------------------------------
    def delete(self, record: BaseModel) -> None:
        adapter = adapter_for(type(record))
        identity = adapter.get_id(record)
        if is_unset_identity(identity):
            raise UnsetIdentityError(f"Cannot delete {type(record).__name__}: record has no identity")

        self.gateway.remove_by_id(adapter.collection, identity)
        logger.debug("Deleted {collection}/{identity}", collection=adapter.collection, identity=identity)


def connect(settings: Optional[MapperSettings] = None, **client_options) -> DocumentMapper:
    """Connect to MongoDB using ``settings`` and return a ready mapper."""

    settings = settings or get_settings()
    keys = KeyResolver.from_settings(settings)
    gateway = MongoGateway.connect(settings.connection_string, settings.database, **client_options)
    return DocumentMapper(gateway, keys)
