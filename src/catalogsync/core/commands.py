"""
Update commands produced by the diff engine.

The set is closed: ``CommandKind`` lists every kind, its value is the platform
action name. Each command is a frozen dataclass exposing ``kind`` and
``to_action()`` (the JSON body handed to the transport collaborator).
Callers switch on ``command.kind``, never on the Python type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from .models import (
    AssetDraft,
    AssetSource,
    Attribute,
    Image,
    LocalizedString,
    PriceDraft,
    Reference,
    SearchKeywords,
)
from .payloads import to_json


class CommandKind(str, Enum):
    CHANGE_NAME = "changeName"
    SET_DESCRIPTION = "setDescription"
    CHANGE_SLUG = "changeSlug"
    SET_SEARCH_KEYWORDS = "setSearchKeywords"
    SET_META_TITLE = "setMetaTitle"
    SET_META_DESCRIPTION = "setMetaDescription"
    SET_META_KEYWORDS = "setMetaKeywords"
    SET_TAX_CATEGORY = "setTaxCategory"
    TRANSITION_STATE = "transitionState"
    ADD_TO_CATEGORY = "addToCategory"
    REMOVE_FROM_CATEGORY = "removeFromCategory"
    SET_CATEGORY_ORDER_HINT = "setCategoryOrderHint"
    ADD_VARIANT = "addVariant"
    REMOVE_VARIANT = "removeVariant"
    CHANGE_MASTER_VARIANT = "changeMasterVariant"
    SET_SKU = "setSku"
    SET_ATTRIBUTE = "setAttribute"
    SET_ATTRIBUTE_IN_ALL_VARIANTS = "setAttributeInAllVariants"
    ADD_PRICE = "addPrice"
    REMOVE_PRICE = "removePrice"
    CHANGE_PRICE = "changePrice"
    SET_PRICE_CUSTOM_TYPE = "setProductPriceCustomType"
    SET_PRICE_CUSTOM_FIELD = "setProductPriceCustomField"
    ADD_EXTERNAL_IMAGE = "addExternalImage"
    REMOVE_IMAGE = "removeImage"
    MOVE_IMAGE_TO_POSITION = "moveImageToPosition"
    ADD_ASSET = "addAsset"
    REMOVE_ASSET = "removeAsset"
    CHANGE_ASSET_ORDER = "changeAssetOrder"
    CHANGE_ASSET_NAME = "changeAssetName"
    SET_ASSET_DESCRIPTION = "setAssetDescription"
    SET_ASSET_TAGS = "setAssetTags"
    SET_ASSET_SOURCES = "setAssetSources"
    SET_ASSET_CUSTOM_TYPE = "setAssetCustomType"
    SET_ASSET_CUSTOM_FIELD = "setAssetCustomField"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"


@dataclass(frozen=True)
class UpdateCommand:
    kind: ClassVar[CommandKind]

    def to_action(self) -> Dict[str, Any]:
        """Platform JSON for this command; ``None`` fields are omitted (= unset)."""
        body: Dict[str, Any] = {"action": self.kind.value}
        body.update(to_json(self))
        return body


# ---------- Item-level fields ----------

@dataclass(frozen=True)
class ChangeName(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.CHANGE_NAME
    name: LocalizedString = field(default_factory=dict)


@dataclass(frozen=True)
class SetDescription(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_DESCRIPTION
    description: Optional[LocalizedString] = None


@dataclass(frozen=True)
class ChangeSlug(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.CHANGE_SLUG
    slug: LocalizedString = field(default_factory=dict)


@dataclass(frozen=True)
class SetSearchKeywords(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_SEARCH_KEYWORDS
    search_keywords: Optional[SearchKeywords] = None


@dataclass(frozen=True)
class SetMetaTitle(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_META_TITLE
    meta_title: Optional[LocalizedString] = None


@dataclass(frozen=True)
class SetMetaDescription(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_META_DESCRIPTION
    meta_description: Optional[LocalizedString] = None


@dataclass(frozen=True)
class SetMetaKeywords(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_META_KEYWORDS
    meta_keywords: Optional[LocalizedString] = None


@dataclass(frozen=True)
class SetTaxCategory(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_TAX_CATEGORY
    tax_category: Optional[Reference] = None


@dataclass(frozen=True)
class TransitionState(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.TRANSITION_STATE
    state: Optional[Reference] = None


@dataclass(frozen=True)
class AddToCategory(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.ADD_TO_CATEGORY
    category: Optional[Reference] = None


@dataclass(frozen=True)
class RemoveFromCategory(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.REMOVE_FROM_CATEGORY
    category: Optional[Reference] = None


@dataclass(frozen=True)
class SetCategoryOrderHint(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_CATEGORY_ORDER_HINT
    category_id: str = ""
    order_hint: Optional[str] = None


# ---------- Variants ----------

@dataclass(frozen=True)
class AddVariant(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.ADD_VARIANT
    key: Optional[str] = None
    sku: Optional[str] = None
    attributes: Tuple[Attribute, ...] = ()
    prices: Tuple[PriceDraft, ...] = ()
    images: Tuple[Image, ...] = ()
    assets: Tuple[AssetDraft, ...] = ()


@dataclass(frozen=True)
class RemoveVariant(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.REMOVE_VARIANT
    id: int = 0


@dataclass(frozen=True)
class ChangeMasterVariant(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.CHANGE_MASTER_VARIANT
    sku: str = ""


@dataclass(frozen=True)
class SetSku(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_SKU
    variant_id: int = 0
    sku: Optional[str] = None


# ---------- Attributes ----------

@dataclass(frozen=True)
class SetAttribute(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ATTRIBUTE
    variant_id: int = 0
    name: str = ""
    value: Any = None


@dataclass(frozen=True)
class SetAttributeInAllVariants(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ATTRIBUTE_IN_ALL_VARIANTS
    name: str = ""
    value: Any = None


# ---------- Prices ----------

@dataclass(frozen=True)
class AddPrice(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.ADD_PRICE
    variant_id: int = 0
    price: Optional[PriceDraft] = None


@dataclass(frozen=True)
class RemovePrice(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.REMOVE_PRICE
    price_id: str = ""


@dataclass(frozen=True)
class ChangePrice(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.CHANGE_PRICE
    price_id: str = ""
    price: Optional[PriceDraft] = None


@dataclass(frozen=True)
class SetPriceCustomType(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_PRICE_CUSTOM_TYPE
    price_id: str = ""
    type: Optional[Reference] = None
    fields: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SetPriceCustomField(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_PRICE_CUSTOM_FIELD
    price_id: str = ""
    name: str = ""
    value: Any = None


# ---------- Images ----------

@dataclass(frozen=True)
class AddExternalImage(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.ADD_EXTERNAL_IMAGE
    variant_id: int = 0
    image: Optional[Image] = None


@dataclass(frozen=True)
class RemoveImage(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.REMOVE_IMAGE
    variant_id: int = 0
    image_url: str = ""


@dataclass(frozen=True)
class MoveImageToPosition(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.MOVE_IMAGE_TO_POSITION
    variant_id: int = 0
    image_url: str = ""
    position: int = 0


# ---------- Assets ----------

@dataclass(frozen=True)
class AddAsset(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.ADD_ASSET
    variant_id: int = 0
    asset: Optional[AssetDraft] = None
    position: Optional[int] = None


@dataclass(frozen=True)
class RemoveAsset(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.REMOVE_ASSET
    variant_id: int = 0
    asset_key: str = ""


@dataclass(frozen=True)
class ChangeAssetOrder(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.CHANGE_ASSET_ORDER
    variant_id: int = 0
    asset_order: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ChangeAssetName(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.CHANGE_ASSET_NAME
    variant_id: int = 0
    asset_key: str = ""
    name: LocalizedString = field(default_factory=dict)


@dataclass(frozen=True)
class SetAssetDescription(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ASSET_DESCRIPTION
    variant_id: int = 0
    asset_key: str = ""
    description: Optional[LocalizedString] = None


@dataclass(frozen=True)
class SetAssetTags(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ASSET_TAGS
    variant_id: int = 0
    asset_key: str = ""
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SetAssetSources(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ASSET_SOURCES
    variant_id: int = 0
    asset_key: str = ""
    sources: Tuple[AssetSource, ...] = ()


@dataclass(frozen=True)
class SetAssetCustomType(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ASSET_CUSTOM_TYPE
    variant_id: int = 0
    asset_key: str = ""
    type: Optional[Reference] = None
    fields: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SetAssetCustomField(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.SET_ASSET_CUSTOM_FIELD
    variant_id: int = 0
    asset_key: str = ""
    name: str = ""
    value: Any = None


# ---------- Publishing ----------

@dataclass(frozen=True)
class Publish(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.PUBLISH


@dataclass(frozen=True)
class Unpublish(UpdateCommand):
    kind: ClassVar[CommandKind] = CommandKind.UNPUBLISH
