"""
Lightweight typing aliases used across the record model, codec, and journal.

Provides minimal NewTypes and aliases to improve readability and static checks.
This module contains no runtime logic and is zero-IO.

Examples:
    >>> from nftlife.core.typing import UnixSeconds, RecordAddress
    >>> def later(t: UnixSeconds, by: int) -> UnixSeconds:
    ...     return UnixSeconds(int(t) + by)
    >>> later(UnixSeconds(10), 5)
    15
"""

from __future__ import annotations

from typing import Any, NewType

__all__ = [
    "UnixSeconds",
    "EntityRef",
    "RecordAddress",
    "JsonDict",
]

# Wall-clock seconds supplied by the clock collaborator.
UnixSeconds = NewType("UnixSeconds", int)
# Opaque 32-byte foreign key to the underlying asset.
EntityRef = NewType("EntityRef", bytes)
# Hex sha256 of namespace + entity_ref; the store lookup key.
RecordAddress = NewType("RecordAddress", str)

JsonDict = dict[str, Any]
