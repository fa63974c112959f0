from catalogsync.core.commands import (
    AddAsset,
    ChangeAssetName,
    ChangeAssetOrder,
    CommandKind,
    RemoveAsset,
    SetAssetCustomField,
    SetAssetTags,
)
from catalogsync.core.errors import DiffContext, ErrorKind
from catalogsync.core.models import Asset, AssetDraft, AssetSource, CustomFields, Reference, Variant, VariantDraft
from catalogsync.diff.assets import build_asset_updates

CTX = DiffContext(item_key="shirt", variant_key="v")
SRC = (AssetSource(uri="https://cdn.example/manual.pdf"),)


def _asset(key, **kw):
    return Asset(id=f"id-{key}", key=key, name={"en": key}, sources=SRC, **kw)


def _draft(key, **kw):
    kw.setdefault("name", {"en": key})
    return AssetDraft(key=key, sources=SRC, **kw)


def _diff(old, new):
    return build_asset_updates(Variant(id=4, key="v", assets=tuple(old)), VariantDraft(key="v", assets=new), CTX)


def test_identical_assets_give_nothing():
    assert _diff([_asset("a"), _asset("b")], (_draft("a"), _draft("b"))) == ([], [])


def test_remove_then_field_updates_then_order_then_add():
    old = [_asset("a"), _asset("b"), _asset("c")]
    new = (_draft("c"), _draft("new"), _draft("a", name={"en": "A"}, tags=("pdf",)))
    cmds, diags = _diff(old, new)
    assert diags == []
    assert cmds == [
        ChangeAssetName(variant_id=4, asset_key="a", name={"en": "A"}),
        SetAssetTags(variant_id=4, asset_key="a", tags=("pdf",)),
        RemoveAsset(variant_id=4, asset_key="b"),
        ChangeAssetOrder(variant_id=4, asset_order=("id-c", "id-a")),
        AddAsset(variant_id=4, asset=_draft("new"), position=1),
    ]


def test_duplicate_draft_keys_abort_the_variant_assets():
    cmds, diags = _diff([_asset("a")], (_draft("x"), _draft("x")))
    assert cmds == []
    assert diags[0].kind is ErrorKind.DUPLICATE_KEY


def test_null_draft_asset_reported_others_kept():
    cmds, diags = _diff([], (None, _draft("a")))
    assert cmds == [AddAsset(variant_id=4, asset=_draft("a"), position=0)]
    assert diags[0].kind is ErrorKind.NULL_ELEMENT


def test_draft_without_assets_removes_all():
    cmds, _ = _diff([_asset("a"), _asset("b")], None)
    assert cmds == [RemoveAsset(variant_id=4, asset_key="a"), RemoveAsset(variant_id=4, asset_key="b")]


def test_asset_custom_fields_and_ambiguous_type():
    typed = CustomFields(Reference("type", key="asset-type"), {"lang": "en"})
    cmds, _ = _diff([_asset("a", custom=typed)], (_draft("a", custom=CustomFields(typed.type, {"lang": "de"})),))
    assert cmds == [SetAssetCustomField(variant_id=4, asset_key="a", name="lang", value="de")]

    blank = CustomFields(Reference("type"), {"lang": "en"})
    cmds, diags = _diff(
        [_asset("a", custom=blank)],
        (_draft("a", name={"en": "renamed"}, custom=CustomFields(Reference("type"), {"lang": "de"})),),
    )
    # the name change survives, only the custom commands are dropped
    assert [c.kind for c in cmds] == [CommandKind.CHANGE_ASSET_NAME]
    assert diags[0].kind is ErrorKind.CUSTOM_FIELD_AMBIGUOUS
    assert diags[0].context.asset_key == "a"
