"""Lightweight typing helpers shared by the mapper and its store gateways."""

from typing import Any, Dict, Protocol

from bson import ObjectId

Document = Dict[str, Any]


class StoreGateway(Protocol):
    """Minimal set of store operations the mapper relies on."""

    def upsert_by_id(self, collection: str, identity: ObjectId, document: Document) -> None:  # pragma: no cover - structural typing only
        ...

    def find_by_id(self, collection: str, identity: ObjectId) -> Document:  # pragma: no cover - structural typing only
        ...

    def remove_by_id(self, collection: str, identity: ObjectId) -> None:  # pragma: no cover - structural typing only
        ...
