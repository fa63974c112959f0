import pytest

from catalogsync.core.commands import AddExternalImage, CommandKind, MoveImageToPosition, RemoveImage
from catalogsync.core.errors import StructuralInvariantError
from catalogsync.core.models import Image, ImageDimensions, Variant, VariantDraft
from catalogsync.diff.images import build_image_updates, build_move_image_updates


def _img(name):
    return Image(url=f"https://cdn.example/{name}.png", dimensions=ImageDimensions(10, 10))


A, B, C, D = _img("a"), _img("b"), _img("c"), _img("d")


def _diff(old, new):
    return build_image_updates(Variant(id=2, key="v", images=tuple(old)), VariantDraft(key="v", images=tuple(new)))


def test_equal_lists_give_nothing():
    assert _diff([A, B], [A, B]) == []


def test_reorder_only_moves_images_whose_index_changes():
    cmds = _diff([A, B, C], [A, C, B])
    assert all(c.kind is CommandKind.MOVE_IMAGE_TO_POSITION for c in cmds)
    assert cmds == [
        MoveImageToPosition(variant_id=2, image_url=B.url, position=2),
        MoveImageToPosition(variant_id=2, image_url=C.url, position=1),
    ]


def test_remove_add_then_move():
    cmds = _diff([A, B, C], [D, A, C])
    assert cmds[0] == RemoveImage(variant_id=2, image_url=B.url)
    assert cmds[1] == AddExternalImage(variant_id=2, image=D)
    # working list after remove/add: [A, C, D] -> target [D, A, C]
    assert cmds[2:] == [
        MoveImageToPosition(variant_id=2, image_url=A.url, position=1),
        MoveImageToPosition(variant_id=2, image_url=C.url, position=2),
        MoveImageToPosition(variant_id=2, image_url=D.url, position=0),
    ]


def test_label_change_is_a_different_image():
    relabeled = Image(url=A.url, dimensions=A.dimensions, label="front")
    cmds = _diff([A], [relabeled])
    assert [c.kind for c in cmds] == [CommandKind.REMOVE_IMAGE, CommandKind.ADD_EXTERNAL_IMAGE]


def test_move_requires_same_images():
    with pytest.raises(StructuralInvariantError):
        build_move_image_updates(1, [A, B], [A])
    with pytest.raises(StructuralInvariantError):
        build_move_image_updates(1, [A, B], [A, C])
