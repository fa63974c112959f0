"""
Platform JSON <-> model mapping.

- ``parse_item`` / ``parse_draft`` read camelCase platform payloads into the
  frozen model (lists become tuples; ``null`` entries inside draft lists are
  kept so the differs can report them).
- ``to_json`` turns any model object or command into camelCase JSON, dropping
  ``None`` fields.
- ``attribute_metadata_from_product_type`` / ``load_attribute_metadata`` build
  the attribute metadata map from a product type definition.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TypeVar

import yaml

from .models import (
    Asset,
    AssetDraft,
    AssetSource,
    Attribute,
    AttributeMetadata,
    CatalogItem,
    CatalogItemDraft,
    CustomFields,
    Image,
    ImageDimensions,
    Money,
    Price,
    PriceDraft,
    PriceTier,
    Reference,
    SearchKeyword,
    SearchKeywords,
    Variant,
    VariantDraft,
)

SAME_FOR_ALL = "SameForAll"


class PayloadError(ValueError):
    """Raised when a payload cannot be mapped onto the model."""


R = TypeVar("R")


def _payload_errors(what: str) -> Callable[[Callable[..., R]], Callable[..., R]]:
    """Report a missing key or a wrong type anywhere inside the payload as PayloadError."""
    def decorate(parse: Callable[..., R]) -> Callable[..., R]:
        @wraps(parse)
        def wrapper(data: Any) -> R:
            if not isinstance(data, Mapping):
                raise PayloadError(f"{what} must be an object, got {type(data).__name__}")
            try:
                return parse(data)
            except PayloadError:
                raise
            except KeyError as exc:
                raise PayloadError(f"{what} is missing the field {exc}") from exc
            except (TypeError, ValueError, AttributeError) as exc:
                raise PayloadError(f"Invalid {what.lower()}: {exc}") from exc
        return wrapper
    return decorate


# ---------- Serialization ----------

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def to_json(obj: Any) -> Any:
    """Convert model objects / commands into JSON-ready structures."""
    if is_dataclass(obj) and not isinstance(obj, type):
        out: Dict[str, Any] = {}
        for f in fields(obj):
            value = getattr(obj, f.name)
            if value is None:
                continue
            out[_camel(f.name)] = to_json(value)
        return out
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json(v) for v in obj]
    return obj


# ---------- Parsing helpers ----------

def _ref(data: Optional[Mapping[str, Any]], default_type: str = "") -> Optional[Reference]:
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise PayloadError(f"Reference must be an object, got {data!r}")
    return Reference(
        type_id=data.get("typeId") or default_type,
        id=data.get("id"),
        key=data.get("key"),
    )


def _datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise PayloadError(f"Invalid datetime: {value!r}") from exc


def _money(data: Optional[Mapping[str, Any]]) -> Optional[Money]:
    if data is None:
        return None
    try:
        return Money(currency_code=data["currencyCode"], cent_amount=int(data["centAmount"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise PayloadError(f"Invalid money value: {data!r}") from exc


def _dimensions(data: Optional[Mapping[str, Any]]) -> Optional[ImageDimensions]:
    if data is None:
        return None
    return ImageDimensions(w=int(data.get("w", 0)), h=int(data.get("h", 0)))


def _custom(data: Optional[Mapping[str, Any]]) -> Optional[CustomFields]:
    if data is None:
        return None
    raw_fields = data.get("fields")
    return CustomFields(
        type=_ref(data.get("type"), "type"),
        fields=dict(raw_fields) if raw_fields is not None else None,
    )


def _tiers(items: Optional[list]) -> Tuple[PriceTier, ...]:
    return tuple(
        PriceTier(minimum_quantity=int(t["minimumQuantity"]), value=_money(t["value"]))
        for t in (items or [])
    )


def _image(data: Mapping[str, Any]) -> Image:
    return Image(
        url=data["url"],
        dimensions=_dimensions(data.get("dimensions")) or ImageDimensions(0, 0),
        label=data.get("label"),
    )


def _source(data: Mapping[str, Any]) -> AssetSource:
    return AssetSource(
        uri=data["uri"],
        key=data.get("key"),
        dimensions=_dimensions(data.get("dimensions")),
        content_type=data.get("contentType"),
    )


def _search_keywords(data: Optional[Mapping[str, Any]]) -> Optional[SearchKeywords]:
    if data is None:
        return None
    return {
        locale: tuple(SearchKeyword(text=k["text"]) for k in (keywords or []))
        for locale, keywords in data.items()
    }


def _optional_tuple(items: Optional[list], parse) -> Tuple[Any, ...]:
    """Map items, keeping ``None`` entries in place."""
    return tuple(parse(i) if i is not None else None for i in (items or []))


# ---------- Old state ----------

def parse_price(data: Mapping[str, Any]) -> Price:
    return Price(
        id=data["id"],
        value=_money(data.get("value")),
        country=data.get("country"),
        channel=_ref(data.get("channel"), "channel"),
        customer_group=_ref(data.get("customerGroup"), "customer-group"),
        valid_from=_datetime(data.get("validFrom")),
        valid_until=_datetime(data.get("validUntil")),
        tiers=_tiers(data.get("tiers")),
        custom=_custom(data.get("custom")),
    )


def parse_asset(data: Mapping[str, Any]) -> Asset:
    return Asset(
        id=data["id"],
        key=data.get("key"),
        name=dict(data.get("name") or {}),
        description=data.get("description"),
        tags=tuple(data.get("tags") or ()),
        sources=tuple(_source(s) for s in (data.get("sources") or [])),
        custom=_custom(data.get("custom")),
    )


def parse_variant(data: Mapping[str, Any]) -> Variant:
    try:
        variant_id = int(data["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise PayloadError(f"Variant without a valid id: {data!r}") from exc
    return Variant(
        id=variant_id,
        key=data.get("key"),
        sku=data.get("sku"),
        attributes=tuple(Attribute(a["name"], a.get("value")) for a in (data.get("attributes") or [])),
        prices=tuple(parse_price(p) for p in (data.get("prices") or [])),
        images=tuple(_image(i) for i in (data.get("images") or [])),
        assets=tuple(parse_asset(a) for a in (data.get("assets") or [])),
    )


@_payload_errors("Item payload")
def parse_item(data: Mapping[str, Any]) -> CatalogItem:
    """Map an existing item (staged projection) onto :class:`CatalogItem`."""
    if "masterVariant" not in data or data["masterVariant"] is None:
        raise PayloadError("Item payload has no masterVariant")
    return CatalogItem(
        id=data.get("id", ""),
        key=data.get("key"),
        name=dict(data.get("name") or {}),
        slug=dict(data.get("slug") or {}),
        description=data.get("description"),
        search_keywords=_search_keywords(data.get("searchKeywords")),
        meta_title=data.get("metaTitle"),
        meta_description=data.get("metaDescription"),
        meta_keywords=data.get("metaKeywords"),
        tax_category=_ref(data.get("taxCategory"), "tax-category"),
        state=_ref(data.get("state"), "state"),
        categories=tuple(_ref(c, "category") for c in (data.get("categories") or [])),
        category_order_hints=dict(data.get("categoryOrderHints") or {}),
        master_variant=parse_variant(data["masterVariant"]),
        variants=tuple(parse_variant(v) for v in (data.get("variants") or [])),
        published=bool(data.get("published", False)),
        has_staged_changes=bool(data.get("hasStagedChanges", False)),
    )


# ---------- Desired state ----------

def parse_price_draft(data: Mapping[str, Any]) -> PriceDraft:
    return PriceDraft(
        value=_money(data.get("value")),
        country=data.get("country"),
        channel=_ref(data.get("channel"), "channel"),
        customer_group=_ref(data.get("customerGroup"), "customer-group"),
        valid_from=_datetime(data.get("validFrom")),
        valid_until=_datetime(data.get("validUntil")),
        tiers=_tiers(data.get("tiers")),
        custom=_custom(data.get("custom")),
    )


def parse_asset_draft(data: Mapping[str, Any]) -> AssetDraft:
    return AssetDraft(
        key=data.get("key"),
        name=dict(data.get("name") or {}),
        description=data.get("description"),
        tags=tuple(data.get("tags") or ()),
        sources=tuple(_source(s) for s in (data.get("sources") or [])),
        custom=_custom(data.get("custom")),
    )


def parse_variant_draft(data: Mapping[str, Any]) -> VariantDraft:
    assets = data.get("assets", [])
    return VariantDraft(
        key=data.get("key"),
        sku=data.get("sku"),
        attributes=_optional_tuple(data.get("attributes"), lambda a: Attribute(a["name"], a.get("value"))),
        prices=_optional_tuple(data.get("prices"), parse_price_draft),
        images=tuple(_image(i) for i in (data.get("images") or [])),
        assets=None if assets is None else _optional_tuple(assets, parse_asset_draft),
    )


@_payload_errors("Item draft")
def parse_draft(data: Mapping[str, Any]) -> CatalogItemDraft:
    """Map a desired-state payload onto :class:`CatalogItemDraft`."""
    master = data.get("masterVariant")
    return CatalogItemDraft(
        key=data.get("key"),
        name=dict(data.get("name") or {}),
        slug=dict(data.get("slug") or {}),
        description=data.get("description"),
        search_keywords=_search_keywords(data.get("searchKeywords")),
        meta_title=data.get("metaTitle"),
        meta_description=data.get("metaDescription"),
        meta_keywords=data.get("metaKeywords"),
        tax_category=_ref(data.get("taxCategory"), "tax-category"),
        state=_ref(data.get("state"), "state"),
        categories=tuple(_ref(c, "category") for c in (data.get("categories") or [])),
        category_order_hints=dict(data.get("categoryOrderHints") or {}),
        master_variant=parse_variant_draft(master) if master is not None else None,
        variants=_optional_tuple(data.get("variants"), parse_variant_draft),
        publish=bool(data.get("publish", False)),
    )


# ---------- Attribute metadata ----------

def attribute_metadata_from_product_type(payload: Mapping[str, Any]) -> Dict[str, AttributeMetadata]:
    """
    Build ``name -> AttributeMetadata`` from a product type definition:

        attributes:
          - { name: color, attributeConstraint: SameForAll, isRequired: false }
    """
    out: Dict[str, AttributeMetadata] = {}
    for definition in payload.get("attributes") or []:
        if not isinstance(definition, Mapping) or not definition.get("name"):
            raise PayloadError(f"Attribute definition without a name: {definition!r}")
        name = str(definition["name"])
        out[name] = AttributeMetadata(
            name=name,
            is_same_for_all=definition.get("attributeConstraint") == SAME_FOR_ALL,
            is_required=bool(definition.get("isRequired", False)),
        )
    return out


def load_attribute_metadata(path: str) -> Dict[str, AttributeMetadata]:
    """Read a product type file (YAML or JSON) and return its attribute metadata."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Product type file not found: {path}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise PayloadError(f"Top-level product type must be a mapping: {path}")
    return attribute_metadata_from_product_type(data)
