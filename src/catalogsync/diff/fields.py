"""
Field-level differ.

``build_update`` is the building block every other differ uses: equal values
(``None == None`` included) give no command, anything else gives
``factory(new)``. Reference fields go through ``build_reference_update`` so an
id on one side and its resolved key on the other compare equal.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Set, Tuple, TypeVar

from ..core.commands import (
    AddToCategory,
    ChangeName,
    ChangeSlug,
    RemoveFromCategory,
    SetCategoryOrderHint,
    SetDescription,
    SetMetaDescription,
    SetMetaKeywords,
    SetMetaTitle,
    SetSearchKeywords,
    SetTaxCategory,
    TransitionState,
    UpdateCommand,
)
from ..core.errors import Diagnostic
from ..core.models import CatalogItem, CatalogItemDraft, Reference
from ..core.references import EMPTY_CACHE, ReferenceCache, canonical, same_reference

V = TypeVar("V")

DiffResult = Tuple[List[UpdateCommand], List[Diagnostic]]


def build_update(old: V, new: V, factory: Callable[[V], UpdateCommand]) -> Optional[UpdateCommand]:
    if old == new:
        return None
    return factory(new)


def build_reference_update(
    old: Optional[Reference],
    new: Optional[Reference],
    factory: Callable[[Optional[Reference]], UpdateCommand],
    cache: ReferenceCache = EMPTY_CACHE,
) -> Optional[UpdateCommand]:
    if same_reference(old, new, cache):
        return None
    return factory(new)


def present(*commands: Optional[UpdateCommand]) -> List[UpdateCommand]:
    return [c for c in commands if c is not None]


# ---------- Item-level fields ----------

def build_change_name(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    return build_update(old.name, new.name, ChangeName)


def build_set_description(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    return build_update(old.description, new.description, SetDescription)


def build_change_slug(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    return build_update(old.slug, new.slug, ChangeSlug)


def build_set_search_keywords(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    # a draft without search keywords leaves the current ones alone
    if new.search_keywords is None:
        return None
    return build_update(old.search_keywords, new.search_keywords, SetSearchKeywords)


def build_set_meta_title(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    return build_update(old.meta_title, new.meta_title, SetMetaTitle)


def build_set_meta_description(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    return build_update(old.meta_description, new.meta_description, SetMetaDescription)


def build_set_meta_keywords(old: CatalogItem, new: CatalogItemDraft) -> Optional[UpdateCommand]:
    return build_update(old.meta_keywords, new.meta_keywords, SetMetaKeywords)


def build_set_tax_category(
    old: CatalogItem, new: CatalogItemDraft, cache: ReferenceCache = EMPTY_CACHE
) -> Optional[UpdateCommand]:
    return build_reference_update(old.tax_category, new.tax_category, SetTaxCategory, cache)


def build_transition_state(
    old: CatalogItem, new: CatalogItemDraft, cache: ReferenceCache = EMPTY_CACHE
) -> Optional[UpdateCommand]:
    """Only transition when the draft names a state; a missing state is left alone."""
    if new.state is None:
        return None
    return build_reference_update(old.state, new.state, TransitionState, cache)


# ---------- Categories ----------

def _contains(refs, ref: Reference, cache: ReferenceCache) -> bool:
    return any(same_reference(r, ref, cache) for r in refs)


def build_add_to_category(
    old: CatalogItem, new: CatalogItemDraft, cache: ReferenceCache = EMPTY_CACHE
) -> List[UpdateCommand]:
    return [
        AddToCategory(category=ref)
        for ref in new.categories
        if ref is not None and not _contains(old.categories, ref, cache)
    ]


def build_remove_from_category(
    old: CatalogItem, new: CatalogItemDraft, cache: ReferenceCache = EMPTY_CACHE
) -> List[UpdateCommand]:
    return [
        RemoveFromCategory(category=Reference(type_id=ref.type_id or "category", id=ref.id))
        for ref in old.categories
        if not _contains([r for r in new.categories if r is not None], ref, cache)
    ]


def build_set_category_order_hints(
    old: CatalogItem, new: CatalogItemDraft, cache: ReferenceCache = EMPTY_CACHE
) -> List[UpdateCommand]:
    """
    - Hints dropped from the draft are unset, but only for categories the item
      is (or will be) assigned to.
    - Hints that are new or changed are set.
    """
    old_hints = old.category_order_hints or {}
    new_hints = new.category_order_hints or {}
    if old_hints == new_hints:
        return []

    new_category_ids: Set[str] = set()
    for ref in new.categories:
        if ref is None:
            continue
        if ref.id:
            new_category_ids.add(ref.id)
        key = canonical(ref, cache)
        if key:
            new_category_ids.add(key)

    commands: List[UpdateCommand] = []
    for category_id in old_hints:
        if category_id not in new_hints and category_id in new_category_ids:
            commands.append(SetCategoryOrderHint(category_id=category_id, order_hint=None))
    for category_id, hint in new_hints.items():
        if old_hints.get(category_id) != hint:
            commands.append(SetCategoryOrderHint(category_id=category_id, order_hint=hint))
    return commands


def build_category_updates(
    old: CatalogItem, new: CatalogItemDraft, cache: ReferenceCache = EMPTY_CACHE
) -> List[UpdateCommand]:
    commands = build_add_to_category(old, new, cache)
    commands.extend(build_set_category_order_hints(old, new, cache))
    commands.extend(build_remove_from_category(old, new, cache))
    return commands
