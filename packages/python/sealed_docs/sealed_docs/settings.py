"""Configuration for the document mapper.

Values are read from ``SEALED_DOCS_*`` environment variables or a ``.env``
file. Applications can also build a ``MapperSettings`` explicitly and pass it
to :func:`sealed_docs.connect`.
"""
from functools import lru_cache
import json
from typing import Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MapperSettings(BaseSettings):
    """Connection and encryption settings consumed by the mapper."""

    model_config = SettingsConfigDict(env_prefix="SEALED_DOCS_", env_file=".env", extra="ignore")

    connection_string: str = "mongodb://localhost:27017"
    database: str = "sealed_docs"
    encryption_key: str = Field(default="", repr=False)
    encryption_key_per_collection: Dict[str, str] = Field(default_factory=dict, repr=False)

    @field_validator("encryption_key_per_collection", mode="before")
    @classmethod
    def _parse_key_mapping(cls, value):
        # Allow a JSON object when the value comes in as a plain string
        if isinstance(value, str):
            return json.loads(value) if value.strip() else {}
        return value


@lru_cache
def get_settings() -> MapperSettings:
    """Return the process-wide settings, loaded on first use."""

    return MapperSettings()
