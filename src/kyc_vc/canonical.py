"""
Hashing and canonical serialization.

Signing and verification build the credential payload independently, so the
byte form must not depend on the order fields were inserted in.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def sha256_hex(data: str | bytes) -> str:
    """SHA-256 digest of ``data`` as lowercase hex."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hash_pii(value: str, salt: str | None = None) -> str:
    """Hash a PII field into a ``0x``-prefixed hex token.

    The result is deterministic: the same value (and salt) always produces
    the same token, so a verifier holding the raw value can recompute it.

    Args:
        value: Raw PII value (name, date of birth, ...).
        salt: Optional salt, joined to the value with ``:``.

    Returns:
        ``0x`` followed by 64 hex characters.
    """
    data = f"{value}:{salt}" if salt else value
    return "0x" + sha256_hex(data)


def canonicalize(payload: Any) -> bytes:
    """Serialize ``payload`` to canonical JSON bytes.

    Keys are sorted at every nesting level, separators are compact and
    non-ASCII characters are kept as UTF-8. Tuples are written as arrays.

    Raises:
        TypeError: If the payload contains a value JSON cannot represent.
        ValueError: If the payload contains NaN or infinity.
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")
