"""MongoDB store gateway built on top of pymongo.

Only the id-based operations the mapper needs live here; connection pooling,
timeouts and thread safety are handled by ``MongoClient`` itself.
"""

from __future__ import annotations

import time
from typing import Optional

from bson import ObjectId
from loguru import logger
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .errors import DocumentNotFoundError, StoreError
from .typing import Document


def _masked_uri(uri: str) -> str:
    """Hide the password part of a connection string for logging."""

    scheme, sep, rest = uri.partition("://")
    if not sep or "@" not in rest:
        return uri
    credentials, _, host = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


class MongoGateway:
    """Id-based upsert/find/remove against one MongoDB database."""

    def __init__(self, client: MongoClient, database: str):
        self.client = client
        self.database = database

    # ---------------------------------------------------------
    # CONNECT
    # ---------------------------------------------------------
    @classmethod
    def connect(cls, connection_string: str, database: str, **client_options) -> "MongoGateway":
        """Dial the server and ping it; raise :class:`StoreError` if unreachable."""

        client_options.setdefault("serverSelectionTimeoutMS", 5000)
        start = time.perf_counter()
        try:
            client: MongoClient = MongoClient(connection_string, **client_options)
            client.admin.command("ping")
        except PyMongoError as exc:
            logger.error(
                "MongoDB at {uri} unreachable: {error}",
                uri=_masked_uri(connection_string),
                error=exc,
            )
            raise StoreError(f"Failed to connect to {_masked_uri(connection_string)}: {exc}") from exc

        duration = (time.perf_counter() - start) * 1000
        logger.info(
            "MongoGateway connected to {uri} db={database} in {duration:.2f} ms",
            uri=_masked_uri(connection_string),
            database=database,
            duration=duration,
        )
        return cls(client, database)

    def collection(self, name: str) -> Collection:
        """Convenience for retrieving a collection of the configured database."""

        return self.client[self.database][name]

    def close(self) -> None:
        self.client.close()

    # ---------------------------------------------------------
    # UPSERT
    # ---------------------------------------------------------
    def upsert_by_id(self, collection: str, identity: ObjectId, document: Document) -> None:
        try:
            self.collection(collection).replace_one({"_id": identity}, document, upsert=True)
        except PyMongoError as exc:
            raise self._store_error("upsert", collection, identity, exc) from exc

    # ---------------------------------------------------------
    # FIND
    # ---------------------------------------------------------
    def find_by_id(self, collection: str, identity: ObjectId) -> Document:
        try:
            raw: Optional[Document] = self.collection(collection).find_one({"_id": identity})
        except PyMongoError as exc:
            raise self._store_error("find", collection, identity, exc) from exc
        if raw is None:
            raise DocumentNotFoundError(f"{collection}/{identity} not found", collection=collection)
        return raw

    # ---------------------------------------------------------
    # REMOVE
    # ---------------------------------------------------------
    def remove_by_id(self, collection: str, identity: ObjectId) -> None:
        try:
            result = self.collection(collection).delete_one({"_id": identity})
        except PyMongoError as exc:
            raise self._store_error("remove", collection, identity, exc) from exc
        if result.deleted_count == 0:
            raise DocumentNotFoundError(f"{collection}/{identity} not found", collection=collection)

    @staticmethod
    def _store_error(action: str, collection: str, identity: ObjectId, exc: Exception) -> StoreError:
        logger.warning(
            "MongoDB {action} {collection}/{identity} failed: {error}",
            action=action,
            collection=collection,
            identity=identity,
            error=exc,
        )
        return StoreError(f"{action} {collection}/{identity} failed: {exc}", collection=collection)
