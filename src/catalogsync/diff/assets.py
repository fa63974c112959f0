"""
Asset differ for one variant.

Assets are matched by key. Commands come out as:

- RemoveAsset for old assets missing from the draft, field updates for matched ones
- ChangeAssetOrder (asset ids) when the surviving assets are out of order
- AddAsset with its draft position for new assets

ChangeAssetOrder needs ids, which new assets do not have yet, so it always
precedes the AddAsset commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..core.commands import (
    AddAsset,
    ChangeAssetName,
    ChangeAssetOrder,
    RemoveAsset,
    SetAssetCustomField,
    SetAssetCustomType,
    SetAssetDescription,
    SetAssetSources,
    SetAssetTags,
    UpdateCommand,
)
from ..core.errors import Diagnostic, DiffContext, ErrorKind
from ..core.models import Asset, AssetDraft, Reference, Variant, VariantDraft
from ..core.references import EMPTY_CACHE, ReferenceCache
from .custom_fields import build_custom_updates
from .fields import DiffResult, build_update, present

DUPLICATE_ASSET_KEYS = (
    "Supplied asset drafts have duplicate keys. Asset keys are expected to be unique "
    "inside their variant."
)
NULL_ASSET = "Asset draft is null."
FAILED_TO_BUILD_ASSET_UPDATES = "Failed to build asset update actions on the variant with key '{variant_key}'. Reason: {reason}"


@dataclass(frozen=True)
class AssetCustomBuilder:
    variant_id: int
    asset_key: str

    def set_type(self, type_: Optional[Reference], fields: Optional[Dict[str, Any]]) -> UpdateCommand:
        return SetAssetCustomType(variant_id=self.variant_id, asset_key=self.asset_key, type=type_, fields=fields)

    def set_field(self, name: str, value: Any) -> UpdateCommand:
        return SetAssetCustomField(variant_id=self.variant_id, asset_key=self.asset_key, name=name, value=value)


def build_matched_asset_updates(
    variant_id: int,
    old: Asset,
    new: AssetDraft,
    context: DiffContext,
    cache: ReferenceCache = EMPTY_CACHE,
) -> DiffResult:
    key = old.key or ""
    commands = present(
        build_update(old.name, new.name, lambda v: ChangeAssetName(variant_id=variant_id, asset_key=key, name=v)),
        build_update(
            old.description,
            new.description,
            lambda v: SetAssetDescription(variant_id=variant_id, asset_key=key, description=v),
        ),
        build_update(
            tuple(old.tags or ()),
            tuple(new.tags or ()),
            lambda v: SetAssetTags(variant_id=variant_id, asset_key=key, tags=v),
        ),
        build_update(
            tuple(old.sources or ()),
            tuple(new.sources or ()),
            lambda v: SetAssetSources(variant_id=variant_id, asset_key=key, sources=v),
        ),
    )
    custom_commands, diagnostics = build_custom_updates(
        old.custom,
        new.custom,
        AssetCustomBuilder(variant_id, key),
        context,
        f"asset with key '{key}'",
        cache,
    )
    commands.extend(custom_commands)
    return commands, diagnostics


def build_asset_updates(
    old_variant: Variant,
    new_variant: VariantDraft,
    context: DiffContext,
    cache: ReferenceCache = EMPTY_CACHE,
) -> DiffResult:
    variant_id = old_variant.id
    old_assets = list(old_variant.assets or ())

    if new_variant.assets is None:
        return [RemoveAsset(variant_id=variant_id, asset_key=a.key or "") for a in old_assets], []

    diagnostics: List[Diagnostic] = []
    drafts: Dict[str, AssetDraft] = {}
    positioned: List[Tuple[int, AssetDraft]] = []
    for draft in new_variant.assets:
        if draft is None:
            diagnostics.append(Diagnostic.error(ErrorKind.NULL_ELEMENT, context, NULL_ASSET))
            continue
        if draft.key in drafts:
            message = FAILED_TO_BUILD_ASSET_UPDATES.format(variant_key=new_variant.key, reason=DUPLICATE_ASSET_KEYS)
            return [], [Diagnostic.error(ErrorKind.DUPLICATE_KEY, context, message)]
        drafts[draft.key] = draft
        positioned.append((len(positioned), draft))

    commands: List[UpdateCommand] = []
    surviving: List[Asset] = []
    for old in old_assets:
        draft = drafts.get(old.key)
        if draft is None:
            commands.append(RemoveAsset(variant_id=variant_id, asset_key=old.key or ""))
            continue
        surviving.append(old)
        matched_commands, matched_diagnostics = build_matched_asset_updates(
            variant_id, old, draft, context.child(asset_key=old.key), cache
        )
        commands.extend(matched_commands)
        diagnostics.extend(matched_diagnostics)

    order = build_change_asset_order(variant_id, surviving, [d for _, d in positioned])
    if order is not None:
        commands.append(order)

    old_keys = {a.key for a in old_assets}
    commands.extend(
        AddAsset(variant_id=variant_id, asset=draft, position=position)
        for position, draft in positioned
        if draft.key not in old_keys
    )
    return commands, diagnostics


def build_change_asset_order(
    variant_id: int,
    surviving: List[Asset],
    drafts: List[AssetDraft],
) -> Optional[UpdateCommand]:
    ids_by_key = {a.key: a.id for a in surviving}
    old_order = tuple(a.id for a in surviving)
    new_order = tuple(ids_by_key[d.key] for d in drafts if d.key in ids_by_key)
    return build_update(old_order, new_order, lambda v: ChangeAssetOrder(variant_id=variant_id, asset_order=v))
