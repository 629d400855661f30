import copy

import pytest

from sealed_docs.errors import DocumentNotFoundError
from sealed_docs.keys import KeyResolver
from sealed_docs.mapper import DocumentMapper

DEFAULT_KEY = b"d" * 32
OVERRIDE_KEY = b"o" * 32


class InMemoryGateway:
    """Stores documents per collection and records every call."""

    def __init__(self):
        self.collections = {}
        self.calls = []

    def upsert_by_id(self, collection, identity, document):
        self.calls.append(("upsert", collection, identity))
        self.collections.setdefault(collection, {})[identity] = copy.deepcopy(document)

    def find_by_id(self, collection, identity):
        self.calls.append(("find", collection, identity))
        try:
            return copy.deepcopy(self.collections[collection][identity])
        except KeyError:
            raise DocumentNotFoundError(f"{collection}/{identity} not found", collection=collection)

    def remove_by_id(self, collection, identity):
        self.calls.append(("remove", collection, identity))
        try:
            del self.collections[collection][identity]
        except KeyError:
            raise DocumentNotFoundError(f"{collection}/{identity} not found", collection=collection)


@pytest.fixture()
def gateway():
    return InMemoryGateway()


@pytest.fixture()
def keys():
    return KeyResolver(DEFAULT_KEY, {"vault_entry": OVERRIDE_KEY})


@pytest.fixture()
def mapper(gateway, keys):
    return DocumentMapper(gateway, keys)
