"""
Action groups and the allow/deny filter that gates each differ.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, TypeVar

T = TypeVar("T")


class ActionGroup(str, Enum):
    NAME = "name"
    DESCRIPTION = "description"
    SLUG = "slug"
    SEARCH_KEYWORDS = "search_keywords"
    META_TITLE = "meta_title"
    META_DESCRIPTION = "meta_description"
    META_KEYWORDS = "meta_keywords"
    TAX_CATEGORY = "tax_category"
    STATE = "state"
    CATEGORIES = "categories"
    ATTRIBUTES = "attributes"
    IMAGES = "images"
    PRICES = "prices"
    ASSETS = "assets"
    SKU = "sku"

    @classmethod
    def parse(cls, name: str) -> "ActionGroup":
        """Accept ``meta_title``, ``META_TITLE``, ``meta-title`` or ``metatitle``."""
        norm = str(name).strip().lower().replace("-", "_")
        for group in cls:
            if norm in (group.value, group.value.replace("_", "")):
                return group
        raise ValueError(f"Unknown action group: {name!r}")


@dataclass(frozen=True)
class SyncFilter:
    """Either an allow-list (``only``) or a deny-list (``excluding``) of groups."""
    groups: FrozenSet[ActionGroup]
    include: bool

    @classmethod
    def all(cls) -> "SyncFilter":
        return cls(frozenset(), include=False)

    @classmethod
    def only(cls, *groups: ActionGroup) -> "SyncFilter":
        return cls(frozenset(groups), include=True)

    @classmethod
    def excluding(cls, *groups: ActionGroup) -> "SyncFilter":
        return cls(frozenset(groups), include=False)

    @classmethod
    def from_names(cls, mode: str, names: Iterable[str]) -> "SyncFilter":
        groups = [ActionGroup.parse(n) for n in names]
        if mode == "all":
            return cls.all()
        if mode == "include":
            return cls.only(*groups)
        if mode == "exclude":
            return cls.excluding(*groups)
        raise ValueError(f"Unknown filter mode: {mode!r}")

    def passes(self, group: ActionGroup) -> bool:
        return (group in self.groups) == self.include


def build_if_passes(sync_filter: SyncFilter, group: ActionGroup, supplier: Callable[[], List[T]]) -> List[T]:
    """Run ``supplier`` only when ``group`` passes the filter."""
    if not sync_filter.passes(group):
        return []
    return supplier()
