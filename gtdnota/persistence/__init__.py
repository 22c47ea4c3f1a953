"""Versioned TOML persistence of the nota collection."""

from .codec import decode, encode, load_document
from .migrate import CURRENT_VERSION, DocumentV3, migrate_v1_to_v2, migrate_v2_to_v3

__all__ = [
    "CURRENT_VERSION",
    "DocumentV3",
    "decode",
    "encode",
    "load_document",
    "migrate_v1_to_v2",
    "migrate_v2_to_v3",
]
