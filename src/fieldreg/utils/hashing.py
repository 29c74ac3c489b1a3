"""Hashing utilities for fieldreg."""

import hashlib
import json
from typing import Any, Mapping


def sha256_hash(content: str) -> str:
    """Calculate SHA256 hash of content.

    Args:
        content: Text content to hash.

    Returns:
        Hexadecimal SHA256 hash string.
    """
    return hashlib.sha256(content.encode()).hexdigest()


def _with_string_keys(value: Any) -> Any:
    # Parsed YAML can mix int and str keys, which sort_keys cannot order
    if isinstance(value, Mapping):
        return {str(key): _with_string_keys(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_with_string_keys(item) for item in value]
    return value


def fingerprint(*parts: Any) -> str:
    """Hash JSON-compatible structures into a process-independent fingerprint.

    Keys are stringified and sorted so two structurally equal inputs always
    hash the same, regardless of dict insertion order or key type.

    Args:
        parts: JSON-serializable values.

    Returns:
        Hexadecimal SHA256 hash string.
    """
    canonical = json.dumps(
        _with_string_keys(parts), sort_keys=True, separators=(",", ":"), default=str
    )
    return sha256_hash(canonical)
