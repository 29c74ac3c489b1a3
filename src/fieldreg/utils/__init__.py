"""Utility helpers for fieldreg."""

from .files import read_structured_file
from .hashing import fingerprint, sha256_hash

__all__ = ["read_structured_file", "fingerprint", "sha256_hash"]
