import pytest

from catalogsync.diff.filters import ActionGroup, SyncFilter, build_if_passes


def test_parse_accepts_common_spellings():
    assert ActionGroup.parse("meta_title") is ActionGroup.META_TITLE
    assert ActionGroup.parse("META-TITLE") is ActionGroup.META_TITLE
    assert ActionGroup.parse("metatitle") is ActionGroup.META_TITLE
    with pytest.raises(ValueError):
        ActionGroup.parse("colour")


def test_allow_and_deny_lists():
    assert all(SyncFilter.all().passes(g) for g in ActionGroup)

    only = SyncFilter.only(ActionGroup.PRICES)
    assert only.passes(ActionGroup.PRICES)
    assert not only.passes(ActionGroup.IMAGES)

    deny = SyncFilter.excluding(ActionGroup.PRICES)
    assert not deny.passes(ActionGroup.PRICES)
    assert deny.passes(ActionGroup.IMAGES)


def test_from_names_and_gated_supplier():
    flt = SyncFilter.from_names("exclude", ["images"])
    calls = []

    def supplier():
        calls.append(1)
        return ["cmd"]

    assert build_if_passes(flt, ActionGroup.IMAGES, supplier) == []
    assert calls == []  # supplier not evaluated when filtered out
    assert build_if_passes(flt, ActionGroup.NAME, supplier) == ["cmd"]

    with pytest.raises(ValueError):
        SyncFilter.from_names("some", [])
