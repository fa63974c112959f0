"""
Price list differ for one variant.

Prices are matched by identity ``(currency, country, channel, customer group,
valid from, valid until)``, never by id (drafts have none).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from ..core.commands import (
    AddPrice,
    ChangePrice,
    CommandKind,
    RemovePrice,
    SetPriceCustomField,
    SetPriceCustomType,
    UpdateCommand,
)
from ..core.errors import Diagnostic, DiffContext, ErrorKind
from ..core.models import Price, PriceDraft, Reference, Variant, VariantDraft
from ..core.references import EMPTY_CACHE, ReferenceCache, canonical
from .custom_fields import build_custom_updates
from .fields import DiffResult

NULL_PRICE = "New price is null."
NULL_PRICE_VALUE = "New price has no value; it is skipped."

PriceIdentity = Tuple[
    Optional[str], Optional[str], Optional[str], Optional[str], Optional[datetime], Optional[datetime]
]


@dataclass(frozen=True)
class PriceCustomBuilder:
    price_id: str

    def set_type(self, type_: Optional[Reference], fields: Optional[Dict[str, Any]]) -> UpdateCommand:
        return SetPriceCustomType(price_id=self.price_id, type=type_, fields=fields)

    def set_field(self, name: str, value: Any) -> UpdateCommand:
        return SetPriceCustomField(price_id=self.price_id, name=name, value=value)


def price_identity(price: Union[Price, PriceDraft], cache: ReferenceCache = EMPTY_CACHE) -> PriceIdentity:
    return (
        price.value.currency_code if price.value else None,
        price.country,
        canonical(price.channel, cache),
        canonical(price.customer_group, cache),
        price.valid_from,
        price.valid_until,
    )


def _describe(identity: PriceIdentity) -> str:
    currency, country, channel, group, valid_from, valid_until = identity
    parts = [currency or "?", country or "*"]
    if channel:
        parts.append(f"channel={channel}")
    if group:
        parts.append(f"group={group}")
    if valid_from or valid_until:
        parts.append(f"valid={valid_from}..{valid_until}")
    return " ".join(parts)


def build_price_change(old: Price, new: PriceDraft) -> Optional[UpdateCommand]:
    """One ChangePrice at most: a value change wins over a tier change."""
    if old.value != new.value:
        return ChangePrice(price_id=old.id, price=new)
    if tuple(old.tiers or ()) != tuple(new.tiers or ()):
        return ChangePrice(price_id=old.id, price=new)
    return None


def build_matched_price_updates(
    old: Price,
    new: PriceDraft,
    context: DiffContext,
    cache: ReferenceCache = EMPTY_CACHE,
) -> DiffResult:
    commands: List[UpdateCommand] = []
    change = build_price_change(old, new)
    if change is not None:
        commands.append(change)
    custom_commands, diagnostics = build_custom_updates(
        old.custom, new.custom, PriceCustomBuilder(old.id), context, f"price with id '{old.id}'", cache
    )
    commands.extend(custom_commands)
    return commands, diagnostics


def sort_price_updates(commands: List[UpdateCommand]) -> List[UpdateCommand]:
    """Removals first; everything else keeps its relative order."""
    return sorted(commands, key=lambda c: 0 if c.kind is CommandKind.REMOVE_PRICE else 1)


def build_price_updates(
    old_variant: Variant,
    new_variant: VariantDraft,
    context: DiffContext,
    cache: ReferenceCache = EMPTY_CACHE,
) -> DiffResult:
    variant_id = old_variant.id
    new_prices = tuple(new_variant.prices or ())
    diagnostics: List[Diagnostic] = []

    new_identities = {
        price_identity(p, cache) for p in new_prices if p is not None and p.value is not None
    }
    commands: List[UpdateCommand] = [
        RemovePrice(price_id=p.id)
        for p in old_variant.prices
        if price_identity(p, cache) not in new_identities
    ]

    old_by_identity = {price_identity(p, cache): p for p in old_variant.prices}
    for index, new_price in enumerate(new_prices):
        if new_price is None:
            diagnostics.append(
                Diagnostic.error(ErrorKind.NULL_ELEMENT, context.child(price=f"#{index}"), NULL_PRICE)
            )
            continue
        identity = price_identity(new_price, cache)
        price_context = context.child(price=_describe(identity))
        if new_price.value is None:
            diagnostics.append(Diagnostic.warning(ErrorKind.NULL_ELEMENT, price_context, NULL_PRICE_VALUE))
            continue

        matching = old_by_identity.get(identity)
        if matching is None:
            commands.append(AddPrice(variant_id=variant_id, price=new_price))
            continue
        matched_commands, matched_diagnostics = build_matched_price_updates(
            matching, new_price, price_context, cache
        )
        commands.extend(matched_commands)
        diagnostics.extend(matched_diagnostics)

    return sort_price_updates(commands), diagnostics
