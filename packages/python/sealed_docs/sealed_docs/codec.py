"""
sealed_docs.codec
~~~~~~~~~~~~~~~~~

Translates records into store documents and back, encrypting the fields a
record type marks as :class:`~sealed_docs.records.Sensitive`.

Sensitive values are serialised as a one-entry BSON document, so bytes,
datetimes and ObjectIds survive as-is, and sealed with AES-GCM.  Each call
uses a fresh 12-byte nonce; the stored payload is ``nonce || ciphertext``
(the ciphertext carries the 16-byte authentication tag) wrapped in a BSON
binary.  The field name is bound as associated data, so a ciphertext copied
into another field fails authentication.
"""

from __future__ import annotations

import os
from typing import Any

import bson
from bson import Binary
from bson.errors import InvalidBSON, InvalidDocument
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel

from .errors import EncryptionError
from .fields import set_field
from .records import DOCUMENT_ID, IDENTITY_FIELD, adapter_for
from .typing import Document

# --------------------------------------------------------------------------- #
# Configuration
# --------------------------------------------------------------------------- #

#: AES key sizes accepted by AES-GCM (128, 192 and 256 bit)
KEY_SIZES = (16, 24, 32)

NONCE_SIZE: int = 12
TAG_SIZE: int = 16

#: Sensitive values are sealed as the BSON document ``{"v": value}``
_VALUE_KEY = "v"

# --------------------------------------------------------------------------- #
# Helper Functions
# --------------------------------------------------------------------------- #


def check_key(key: bytes) -> None:
    """Raise :class:`EncryptionError` unless ``key`` is a valid AES key length."""

    if len(key) not in KEY_SIZES:
        raise EncryptionError(
            f"Encryption key must be {', '.join(map(str, KEY_SIZES))} bytes long, got {len(key)}"
        )


def _cipher(key: bytes) -> AESGCM:
    check_key(key)
    return AESGCM(key)


def encrypt_value(key: bytes, field: str, plaintext: bytes) -> Binary:
    """
    Encrypt ``plaintext`` for storage in ``field``.

    Parameters
    ----------
    key : bytes
        16, 24 or 32 byte AES key.
    field : str
        Field name, authenticated as associated data.
    plaintext : bytes
        The data to encrypt.

    Returns
    -------
    Binary
        ``nonce || ciphertext`` as a BSON binary value.
    """
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = _cipher(key).encrypt(nonce, plaintext, field.encode("utf-8"))
    return Binary(nonce + ciphertext)


def decrypt_value(key: bytes, field: str, payload: Any) -> bytes:
    """
    Decrypt a payload produced by :func:`encrypt_value`.

    Raises :class:`EncryptionError` when the payload is malformed, was sealed
    with another key or for another field, or has been tampered with.
    """
    if not isinstance(payload, (bytes, bytearray)):
        raise EncryptionError(f"Field '{field}' is not an encrypted payload ({type(payload).__name__})")
    payload = bytes(payload)
    if len(payload) < NONCE_SIZE + TAG_SIZE:
        raise EncryptionError(f"Encrypted payload for '{field}' is truncated")

    cipher = _cipher(key)
    try:
        return cipher.decrypt(payload[:NONCE_SIZE], payload[NONCE_SIZE:], field.encode("utf-8"))
    except InvalidTag as exc:
        raise EncryptionError(f"Failed to decrypt field '{field}': wrong key or corrupted data") from exc


def _seal(key: bytes, field: str, value: Any) -> Binary:
    try:
        plain = bson.encode({_VALUE_KEY: value})
    except (InvalidDocument, OverflowError) as exc:
        raise EncryptionError(f"Cannot serialise value of '{field}' for encryption: {exc}") from exc
    return encrypt_value(key, field, plain)


def _unseal(key: bytes, field: str, payload: Any) -> Any:
    plain = decrypt_value(key, field, payload)
    try:
        return bson.decode(plain)[_VALUE_KEY]
    except (InvalidBSON, KeyError) as exc:
        raise EncryptionError(f"Decrypted value of '{field}' is not a sealed BSON value") from exc


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #


def encode_document(key: bytes, record: BaseModel) -> Document:
    """Convert ``record`` into a store document, sealing sensitive fields.

    Fields declared with ``Field(exclude=True)`` are not serialised and
    therefore not stored.
    """

    adapter = adapter_for(type(record))
    values = record.model_dump(mode="python")
    document: Document = {DOCUMENT_ID: adapter.get_id(record)}

    for name in adapter.fields:
        if name == IDENTITY_FIELD or name not in values:
            continue
        if adapter.is_sensitive(name):
            document[name] = _seal(key, name, values[name])
        else:
            document[name] = values[name]
    return document


def decode_document(key: bytes, document: Document, record: BaseModel) -> None:
    """Write the fields of ``document`` into ``record`` in place.

    Fields are written one by one; if decryption fails part-way the record is
    left partially updated and should be discarded.
    """

    adapter = adapter_for(type(record))
    for name in adapter.fields:
        source = DOCUMENT_ID if name == IDENTITY_FIELD else name
        if source not in document:
            continue
        value = document[source]
        if adapter.is_sensitive(name):
            value = _unseal(key, name, value)
        set_field(record, name, value)
