"""
Variant set reconciliation for one catalog item.

Old and new variants are matched by key (master included). The steps:

1. both master keys must be non-blank, else no variant commands at all
2. RemoveVariant for old non-master variants whose key is gone
3. matched drafts go through the VariantDiffer, unmatched ones become AddVariant
4. a new master key gives ChangeMasterVariant(sku), then RemoveVariant of the
   old master when its key is gone from the new variants
5. an AddVariant reusing the old master's sku is preceded by SetSku moving the
   old master to a temporary sku
6. when variants are added and the master changes, the new master's
   same-for-all attributes are re-asserted at the front
"""

from __future__ import annotations

from typing import List, Optional, Set

from ..core.commands import (
    AddVariant,
    ChangeMasterVariant,
    CommandKind,
    RemoveVariant,
    SetAttributeInAllVariants,
    SetSku,
    UpdateCommand,
)
from ..core.errors import Diagnostic, DiffContext, ErrorKind
from ..core.models import CatalogItem, CatalogItemDraft, Variant, VariantDraft
from .fields import DiffResult
from .variants import VariantDiffer

TEMP_SKU_SUFFIX = "_temp-suffix"

FAILED_TO_BUILD_VARIANTS = "Failed to build variants update actions on the item with key '{key}'. Reason: {reason}"
BLANK_OLD_MASTER_VARIANT_KEY = "Old master variant key is blank."
BLANK_NEW_MASTER_VARIANT_KEY = "New master variant null or has blank key."
BLANK_NEW_MASTER_VARIANT_SKU = "Master variant has no SKU, but one is required to change the master variant."
NULL_VARIANT = "Variant draft is null."
BLANK_VARIANT_KEY = "The variant key is blank."


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def build_add_variant(draft: VariantDraft) -> UpdateCommand:
    """AddVariant carrying the draft as is; nothing is diffed."""
    return AddVariant(
        key=draft.key,
        sku=draft.sku,
        attributes=tuple(a for a in draft.attributes or () if a is not None),
        prices=tuple(p for p in draft.prices or () if p is not None),
        images=tuple(draft.images or ()),
        assets=tuple(a for a in draft.assets or () if a is not None),
    )


def build_change_master_variant(old: CatalogItem, new: CatalogItemDraft) -> List[UpdateCommand]:
    """Only called once the master keys are known to differ and the new sku is set."""
    commands: List[UpdateCommand] = [ChangeMasterVariant(sku=new.master_variant.sku)]
    old_key = old.master_variant.key
    if not any(v is not None and v.key == old_key for v in new.variants):
        commands.append(RemoveVariant(id=old.master_variant.id))
    return commands


def guard_sku_collision(commands: List[UpdateCommand], old_master: Variant) -> List[UpdateCommand]:
    """Insert SetSku(old master, sku + suffix) right before the AddVariant reusing its sku."""
    if old_master.sku is None:
        return commands
    for index, command in enumerate(commands):
        if command.kind is CommandKind.ADD_VARIANT and command.sku == old_master.sku:
            temporary = SetSku(variant_id=old_master.id, sku=old_master.sku + TEMP_SKU_SUFFIX)
            return commands[:index] + [temporary] + commands[index:]
    return commands


class VariantSetReconciler:
    def __init__(self, variant_differ: Optional[VariantDiffer] = None) -> None:
        self.variant_differ = variant_differ or VariantDiffer()

    def _error(self, key: Optional[str], context: DiffContext, kind: ErrorKind, reason: str) -> Diagnostic:
        return Diagnostic.error(kind, context, FAILED_TO_BUILD_VARIANTS.format(key=key, reason=reason))

    def validate_masters(self, old: CatalogItem, new: CatalogItemDraft, context: DiffContext) -> List[Diagnostic]:
        errors: List[Diagnostic] = []
        if _blank(old.master_variant.key):
            errors.append(self._error(old.key, context, ErrorKind.VALIDATION, BLANK_OLD_MASTER_VARIANT_KEY))
        if new.master_variant is None or _blank(new.master_variant.key):
            errors.append(self._error(old.key, context, ErrorKind.VALIDATION, BLANK_NEW_MASTER_VARIANT_KEY))
        return errors

    def reconcile(self, old: CatalogItem, new: CatalogItemDraft, context: DiffContext) -> DiffResult:
        errors = self.validate_masters(old, new, context)
        if errors:
            return [], errors

        master_changed = new.master_variant.key != old.master_variant.key
        if master_changed and _blank(new.master_variant.sku):
            return [], [self._error(old.key, context, ErrorKind.VALIDATION, BLANK_NEW_MASTER_VARIANT_SKU)]

        new_keys = {v.key for v in new.all_variants() if v is not None}
        commands: List[UpdateCommand] = [
            RemoveVariant(id=v.id) for v in old.variants if v.key not in new_keys
        ]
        diagnostics: List[Diagnostic] = []

        old_by_key = {v.key: v for v in old.all_variants()}
        collected_same_for_all: Set[str] = set()
        for draft in new.all_variants():
            if draft is None:
                diagnostics.append(self._error(old.key, context, ErrorKind.NULL_ELEMENT, NULL_VARIANT))
                continue
            if _blank(draft.key):
                diagnostics.append(self._error(old.key, context, ErrorKind.VALIDATION, BLANK_VARIANT_KEY))
                continue
            matching = old_by_key.get(draft.key)
            if matching is None:
                commands.append(build_add_variant(draft))
                continue
            variant_commands, variant_diagnostics = self.variant_differ.diff(
                matching, draft, collected_same_for_all, context
            )
            commands.extend(variant_commands)
            diagnostics.extend(variant_diagnostics)

        if master_changed:
            commands.extend(build_change_master_variant(old, new))

        kinds = {c.kind for c in commands}
        if CommandKind.ADD_VARIANT in kinds and CommandKind.CHANGE_MASTER_VARIANT in kinds:
            commands = guard_sku_collision(commands, old.master_variant)
            commands = self.reassert_same_for_all(commands, new.master_variant)

        return commands, diagnostics

    def reassert_same_for_all(self, commands: List[UpdateCommand], new_master: VariantDraft) -> List[UpdateCommand]:
        """
        Put every same-for-all attribute of the new master at the front, changed
        or not. Other SetAttributeInAllVariants for those names are dropped.
        """
        metadata = self.variant_differ.attribute_metadata
        front: List[UpdateCommand] = []
        names: Set[str] = set()
        for attribute in new_master.attributes or ():
            if attribute is None or attribute.name in names:
                continue
            meta = metadata.get(attribute.name)
            if meta is None or not meta.is_same_for_all:
                continue
            names.add(attribute.name)
            front.append(SetAttributeInAllVariants(name=attribute.name, value=attribute.value))

        rest = [
            c for c in commands
            if not (c.kind is CommandKind.SET_ATTRIBUTE_IN_ALL_VARIANTS and c.name in names)
        ]
        return front + rest
