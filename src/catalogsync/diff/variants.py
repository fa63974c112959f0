"""
Differ for one matched pair (existing variant, variant draft).
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Set

from ..core.commands import SetSku, UpdateCommand
from ..core.errors import Diagnostic, DiffContext
from ..core.models import AttributeMetadata, Variant, VariantDraft
from ..core.references import EMPTY_CACHE, ReferenceCache
from .assets import build_asset_updates
from .attributes import build_attribute_updates, drop_collected_same_for_all
from .fields import DiffResult, build_update
from .filters import ActionGroup, SyncFilter
from .images import build_image_updates
from .prices import build_price_updates


def build_sku_update(old_variant: Variant, new_variant: VariantDraft) -> Optional[UpdateCommand]:
    return build_update(old_variant.sku, new_variant.sku, lambda sku: SetSku(variant_id=old_variant.id, sku=sku))


class VariantDiffer:
    """Attributes, images, prices, assets then SKU, each gated by the filter."""

    def __init__(
        self,
        sync_filter: Optional[SyncFilter] = None,
        attribute_metadata: Optional[Mapping[str, AttributeMetadata]] = None,
        cache: ReferenceCache = EMPTY_CACHE,
    ) -> None:
        self.sync_filter = sync_filter or SyncFilter.all()
        self.attribute_metadata = dict(attribute_metadata or {})
        self.cache = cache

    def diff(
        self,
        old_variant: Variant,
        new_variant: VariantDraft,
        collected_same_for_all: Set[str],
        context: DiffContext,
    ) -> DiffResult:
        """
        ``collected_same_for_all`` holds the same-for-all attribute names already
        emitted for this item; it is updated in place.
        """
        context = context.child(variant_key=new_variant.key)
        passes = self.sync_filter.passes
        commands: List[UpdateCommand] = []
        diagnostics: List[Diagnostic] = []

        if passes(ActionGroup.ATTRIBUTES):
            attribute_commands, attribute_diagnostics = build_attribute_updates(
                old_variant, new_variant, self.attribute_metadata, context
            )
            commands.extend(drop_collected_same_for_all(attribute_commands, collected_same_for_all))
            diagnostics.extend(attribute_diagnostics)

        if passes(ActionGroup.IMAGES):
            commands.extend(build_image_updates(old_variant, new_variant))

        if passes(ActionGroup.PRICES):
            price_commands, price_diagnostics = build_price_updates(old_variant, new_variant, context, self.cache)
            commands.extend(price_commands)
            diagnostics.extend(price_diagnostics)

        if passes(ActionGroup.ASSETS):
            asset_commands, asset_diagnostics = build_asset_updates(old_variant, new_variant, context, self.cache)
            commands.extend(asset_commands)
            diagnostics.extend(asset_diagnostics)

        if passes(ActionGroup.SKU):
            sku = build_sku_update(old_variant, new_variant)
            if sku is not None:
                commands.append(sku)

        return commands, diagnostics
