"""Collection naming derived from record type names."""

from __future__ import annotations

import re
from typing import Any

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def to_snake(name: str) -> str:
    """Convert ``PascalCase`` / ``camelCase`` to ``snake_case``.

    Runs of capitals stay together, so ``HTTPServer`` becomes ``http_server``
    and ``UserID`` becomes ``user_id``.
    """

    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    return name.lower()


def collection_name_of(record: Any) -> str:
    """Return the collection name for a record instance or a record type."""

    record_type = record if isinstance(record, type) else type(record)
    return to_snake(record_type.__name__)
