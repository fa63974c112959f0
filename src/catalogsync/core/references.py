"""
Read-only id -> key lookups for references.

The cache is filled ahead of time by an external pipeline; the engine only
calls ``get`` and ``contains_key`` and never blocks, fetches or retries.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Protocol

from .models import Reference

__all__ = ["ReferenceCache", "InMemoryReferenceCache", "canonical", "same_reference"]


class ReferenceCache(Protocol):
    def get(self, id_: str) -> Optional[str]:
        ...

    def contains_key(self, id_: str) -> bool:
        ...


class InMemoryReferenceCache:
    """Mapping-backed cache of resolved reference keys."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(entries or {})

    def get(self, id_: str) -> Optional[str]:
        return self._entries.get(id_)

    def contains_key(self, id_: str) -> bool:
        return id_ in self._entries

    def __len__(self) -> int:
        return len(self._entries)


EMPTY_CACHE = InMemoryReferenceCache()


def canonical(ref: Optional[Reference], cache: ReferenceCache = EMPTY_CACHE) -> Optional[str]:
    """
    Return the comparable identity of a reference: its key when known
    (set on the reference or resolvable through the cache), else its id.
    """
    if ref is None:
        return None
    if ref.key:
        return ref.key
    if ref.id and cache.contains_key(ref.id):
        return cache.get(ref.id)
    return ref.id


def same_reference(
    old: Optional[Reference],
    new: Optional[Reference],
    cache: ReferenceCache = EMPTY_CACHE,
) -> bool:
    if old is None or new is None:
        return old is new
    if old.id and new.id and old.id == new.id:
        return True
    return canonical(old, cache) == canonical(new, cache)
