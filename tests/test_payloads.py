from datetime import datetime, timezone

import pytest

from catalogsync.core.commands import AddPrice, ChangeMasterVariant, SetAssetCustomType
from catalogsync.core.models import Money, PriceDraft, Reference
from catalogsync.core.payloads import (
    PayloadError,
    attribute_metadata_from_product_type,
    load_attribute_metadata,
    parse_draft,
    parse_item,
)

ITEM = {
    "id": "p-1",
    "key": "shirt",
    "name": {"en": "Shirt"},
    "slug": {"en": "shirt"},
    "categories": [{"typeId": "category", "id": "cat-1"}],
    "categoryOrderHints": {"cat-1": "0.3"},
    "published": True,
    "hasStagedChanges": True,
    "masterVariant": {
        "id": 1,
        "key": "m",
        "sku": "m-sku",
        "attributes": [{"name": "color", "value": "red"}],
        "prices": [
            {
                "id": "pr-1",
                "value": {"currencyCode": "EUR", "centAmount": 1000},
                "country": "DE",
                "validFrom": "2024-01-01T00:00:00Z",
                "tiers": [{"minimumQuantity": 5, "value": {"currencyCode": "EUR", "centAmount": 900}}],
            }
        ],
        "images": [{"url": "https://cdn.example/a.png", "dimensions": {"w": 10, "h": 20}}],
        "assets": [{"id": "as-1", "key": "manual", "name": {"en": "Manual"}, "sources": [{"uri": "u"}]}],
    },
    "variants": [{"id": 2, "key": "v", "sku": "v-sku"}],
}


def test_parse_item_maps_nested_payload():
    item = parse_item(ITEM)
    assert item.published and item.has_staged_changes
    assert item.categories == (Reference("category", id="cat-1"),)
    master = item.master_variant
    assert master.id == 1
    price = master.prices[0]
    assert price.value == Money("EUR", 1000)
    assert price.valid_from == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert price.tiers[0].minimum_quantity == 5
    assert master.images[0].dimensions.h == 20
    assert master.assets[0].sources[0].uri == "u"
    assert [v.key for v in item.variants] == ["v"]


def test_parse_item_requires_master_and_valid_ids():
    with pytest.raises(PayloadError):
        parse_item({"key": "x"})
    with pytest.raises(PayloadError):
        parse_item({"key": "x", "masterVariant": {"key": "m"}})
    with pytest.raises(PayloadError):
        parse_item({"key": "x", "masterVariant": {"id": 1, "prices": [{"id": "p", "value": {"centAmount": 1}}]}})


def test_item_round_trips_through_its_draft_shape():
    draft = parse_item(ITEM).to_draft()
    assert draft.key == "shirt"
    assert draft.publish is True
    assert draft.master_variant.prices[0] == PriceDraft(
        value=Money("EUR", 1000),
        country="DE",
        valid_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
        tiers=parse_item(ITEM).master_variant.prices[0].tiers,
    )


def test_parse_draft_keeps_null_entries():
    draft = parse_draft(
        {
            "key": "shirt",
            "name": {"en": "Shirt"},
            "slug": {"en": "shirt"},
            "publish": True,
            "masterVariant": {"key": "m", "prices": [None, {"value": {"currencyCode": "EUR", "centAmount": 5}}]},
            "variants": [None, {"key": "v", "assets": None}],
        }
    )
    assert draft.publish is True
    assert draft.master_variant.prices[0] is None
    assert draft.master_variant.prices[1].value == Money("EUR", 5)
    assert draft.variants[0] is None
    assert draft.variants[1].assets is None
    assert draft.master_variant.assets == ()


@pytest.mark.parametrize(
    "payload",
    [
        {"key": "k", "masterVariant": {"key": "m", "attributes": [{"value": 1}]}},
        {"key": "k", "masterVariant": {"key": "m", "images": [{"label": "no url"}]}},
        {"key": "k", "masterVariant": {"key": "m", "prices": [{"value": {"currencyCode": "EUR", "centAmount": 1},
                                                                   "tiers": [{"value": None}]}]}},
        {"key": "k", "searchKeywords": {"en": [{"txt": "tee"}]}, "masterVariant": {"key": "m"}},
        "not an object",
    ],
)
def test_malformed_draft_raises_payload_error(payload):
    with pytest.raises(PayloadError):
        parse_draft(payload)


def test_draft_without_master_variant():
    assert parse_draft({"key": "k", "name": {}, "slug": {}}).master_variant is None


def test_actions_are_camel_case_and_drop_nulls():
    assert ChangeMasterVariant(sku="b").to_action() == {"action": "changeMasterVariant", "sku": "b"}
    add = AddPrice(variant_id=3, price=PriceDraft(value=Money("EUR", 100), country="DE"))
    assert add.to_action() == {
        "action": "addPrice",
        "variantId": 3,
        "price": {"value": {"currencyCode": "EUR", "centAmount": 100}, "country": "DE", "tiers": []},
    }
    unset = SetAssetCustomType(variant_id=1, asset_key="manual")
    assert unset.to_action() == {"action": "setAssetCustomType", "variantId": 1, "assetKey": "manual"}


def test_attribute_metadata_from_product_type():
    meta = attribute_metadata_from_product_type(
        {
            "attributes": [
                {"name": "color", "attributeConstraint": "SameForAll"},
                {"name": "size", "attributeConstraint": "None", "isRequired": True},
            ]
        }
    )
    assert meta["color"].is_same_for_all
    assert not meta["size"].is_same_for_all
    assert meta["size"].is_required

    with pytest.raises(PayloadError):
        attribute_metadata_from_product_type({"attributes": [{"attributeConstraint": "SameForAll"}]})


def test_load_attribute_metadata_from_yaml(tmp_path):
    path = tmp_path / "shirt-type.yml"
    path.write_text(
        "attributes:\n"
        "  - name: color\n"
        "    attributeConstraint: SameForAll\n"
        "  - name: size\n",
        encoding="utf-8",
    )
    meta = load_attribute_metadata(str(path))
    assert sorted(meta) == ["color", "size"]
    assert meta["color"].is_same_for_all

    with pytest.raises(FileNotFoundError):
        load_attribute_metadata(str(tmp_path / "missing.yml"))
