"""Per-collection encryption key resolution."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

from .codec import check_key
from .errors import EncryptionError

if TYPE_CHECKING:  # pragma: no cover
    from .settings import MapperSettings


class KeyResolver:
    """Resolve the encryption key for a collection, falling back to a default."""

    def __init__(self, default_key: bytes, overrides: Optional[Mapping[str, bytes]] = None):
        self._default_key = bytes(default_key)
        self._overrides = MappingProxyType({name: bytes(key) for name, key in (overrides or {}).items()})

    @classmethod
    def from_settings(cls, settings: "MapperSettings") -> "KeyResolver":
        """Build a resolver from configuration, rejecting unusable keys up front."""

        default_key = settings.encryption_key.encode("utf-8")
        overrides = {name: key.encode("utf-8") for name, key in settings.encryption_key_per_collection.items()}
        try:
            check_key(default_key)
        except EncryptionError as exc:
            raise EncryptionError(f"Invalid default encryption key: {exc}") from exc
        for name, key in overrides.items():
            try:
                check_key(key)
            except EncryptionError as exc:
                raise EncryptionError(f"Invalid encryption key for collection '{name}': {exc}") from exc
        return cls(default_key, overrides)

    def key_for(self, collection: str) -> bytes:
        return self._overrides.get(collection, self._default_key)

    def __repr__(self) -> str:
        # never print key material
        return f"KeyResolver(overrides={sorted(self._overrides)})"
