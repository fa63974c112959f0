"""
Catalog data model for catalogsync.

- Old state (CatalogItem, Variant, Price, Asset) carries platform ids.
- Desired state (CatalogItemDraft, VariantDraft, PriceDraft, AssetDraft) has no ids.
- Everything is frozen; ordered collections are tuples so images, money and
  tiers are hashable and compare by value.
- Draft collections may hold ``None`` elements (malformed input); the differs
  report and skip them instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

LocalizedString = Dict[str, str]
CategoryOrderHints = Dict[str, str]


# ---------- References & custom fields ----------

@dataclass(frozen=True)
class Reference:
    """Reference to another resource, by platform id and/or user key."""
    type_id: str
    id: Optional[str] = None
    key: Optional[str] = None


@dataclass(frozen=True)
class CustomFields:
    type: Optional[Reference] = None
    fields: Optional[Dict[str, Any]] = None


# ---------- Prices ----------

@dataclass(frozen=True)
class Money:
    currency_code: str
    cent_amount: int


@dataclass(frozen=True)
class PriceTier:
    minimum_quantity: int
    value: Money


@dataclass(frozen=True)
class PriceDraft:
    value: Optional[Money]
    country: Optional[str] = None
    channel: Optional[Reference] = None
    customer_group: Optional[Reference] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    tiers: Tuple[PriceTier, ...] = ()
    custom: Optional[CustomFields] = None


@dataclass(frozen=True)
class Price:
    id: str
    value: Money
    country: Optional[str] = None
    channel: Optional[Reference] = None
    customer_group: Optional[Reference] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    tiers: Tuple[PriceTier, ...] = ()
    custom: Optional[CustomFields] = None


# ---------- Images & assets ----------

@dataclass(frozen=True)
class ImageDimensions:
    w: int
    h: int


@dataclass(frozen=True)
class Image:
    url: str
    dimensions: ImageDimensions
    label: Optional[str] = None


@dataclass(frozen=True)
class AssetSource:
    uri: str
    key: Optional[str] = None
    dimensions: Optional[ImageDimensions] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class AssetDraft:
    key: Optional[str]
    name: LocalizedString
    description: Optional[LocalizedString] = None
    tags: Tuple[str, ...] = ()
    sources: Tuple[AssetSource, ...] = ()
    custom: Optional[CustomFields] = None


@dataclass(frozen=True)
class Asset:
    id: str
    key: Optional[str]
    name: LocalizedString
    description: Optional[LocalizedString] = None
    tags: Tuple[str, ...] = ()
    sources: Tuple[AssetSource, ...] = ()
    custom: Optional[CustomFields] = None


# ---------- Attributes ----------

@dataclass(frozen=True)
class Attribute:
    name: str
    value: Any = None


@dataclass(frozen=True)
class AttributeMetadata:
    """Per-attribute constraints, taken from the item's product type."""
    name: str
    is_same_for_all: bool = False
    is_required: bool = False


# ---------- Variants ----------

@dataclass(frozen=True)
class VariantDraft:
    key: Optional[str]
    sku: Optional[str] = None
    attributes: Tuple[Optional[Attribute], ...] = ()
    prices: Tuple[Optional[PriceDraft], ...] = ()
    images: Tuple[Image, ...] = ()
    assets: Optional[Tuple[Optional[AssetDraft], ...]] = ()


@dataclass(frozen=True)
class Variant:
    id: int
    key: Optional[str]
    sku: Optional[str] = None
    attributes: Tuple[Attribute, ...] = ()
    prices: Tuple[Price, ...] = ()
    images: Tuple[Image, ...] = ()
    assets: Tuple[Asset, ...] = ()

    def to_draft(self) -> VariantDraft:
        """Return a draft describing this variant exactly as it is."""
        return VariantDraft(
            key=self.key,
            sku=self.sku,
            attributes=self.attributes,
            prices=tuple(_price_to_draft(p) for p in self.prices),
            images=self.images,
            assets=tuple(_asset_to_draft(a) for a in self.assets),
        )


def _price_to_draft(price: Price) -> PriceDraft:
    return PriceDraft(
        value=price.value,
        country=price.country,
        channel=price.channel,
        customer_group=price.customer_group,
        valid_from=price.valid_from,
        valid_until=price.valid_until,
        tiers=price.tiers,
        custom=price.custom,
    )


def _asset_to_draft(asset: Asset) -> AssetDraft:
    return AssetDraft(
        key=asset.key,
        name=asset.name,
        description=asset.description,
        tags=asset.tags,
        sources=asset.sources,
        custom=asset.custom,
    )


# ---------- Items ----------

@dataclass(frozen=True)
class SearchKeyword:
    text: str


SearchKeywords = Dict[str, Tuple[SearchKeyword, ...]]


@dataclass(frozen=True)
class CatalogItemDraft:
    key: Optional[str]
    name: LocalizedString
    slug: LocalizedString
    master_variant: Optional[VariantDraft]
    variants: Tuple[Optional[VariantDraft], ...] = ()
    description: Optional[LocalizedString] = None
    search_keywords: Optional[SearchKeywords] = None
    meta_title: Optional[LocalizedString] = None
    meta_description: Optional[LocalizedString] = None
    meta_keywords: Optional[LocalizedString] = None
    tax_category: Optional[Reference] = None
    state: Optional[Reference] = None
    categories: Tuple[Reference, ...] = ()
    category_order_hints: CategoryOrderHints = field(default_factory=dict)
    publish: bool = False

    def all_variants(self) -> Tuple[Optional[VariantDraft], ...]:
        """Master first, then the other variants (``None`` entries kept)."""
        return (self.master_variant,) + tuple(self.variants)


@dataclass(frozen=True)
class CatalogItem:
    id: str
    key: Optional[str]
    name: LocalizedString
    slug: LocalizedString
    master_variant: Variant
    variants: Tuple[Variant, ...] = ()
    description: Optional[LocalizedString] = None
    search_keywords: Optional[SearchKeywords] = None
    meta_title: Optional[LocalizedString] = None
    meta_description: Optional[LocalizedString] = None
    meta_keywords: Optional[LocalizedString] = None
    tax_category: Optional[Reference] = None
    state: Optional[Reference] = None
    categories: Tuple[Reference, ...] = ()
    category_order_hints: CategoryOrderHints = field(default_factory=dict)
    published: bool = False
    has_staged_changes: bool = False

    def all_variants(self) -> Tuple[Variant, ...]:
        return (self.master_variant,) + tuple(self.variants)

    def to_draft(self) -> CatalogItemDraft:
        """Return a draft that, diffed against this item, yields no commands."""
        return CatalogItemDraft(
            key=self.key,
            name=self.name,
            slug=self.slug,
            master_variant=self.master_variant.to_draft(),
            variants=tuple(v.to_draft() for v in self.variants),
            description=self.description,
            search_keywords=self.search_keywords,
            meta_title=self.meta_title,
            meta_description=self.meta_description,
            meta_keywords=self.meta_keywords,
            tax_category=self.tax_category,
            state=self.state,
            categories=self.categories,
            category_order_hints=dict(self.category_order_hints),
            publish=self.published,
        )
