"""
Image list differ for one variant.

Images compare by value (url, dimensions, label). The result only ever holds
RemoveImage, AddExternalImage and MoveImageToPosition.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from ..core.commands import AddExternalImage, MoveImageToPosition, RemoveImage, UpdateCommand
from ..core.errors import StructuralInvariantError
from ..core.models import Image, Variant, VariantDraft


def build_image_updates(old_variant: Variant, new_variant: VariantDraft) -> List[UpdateCommand]:
    old_images = list(old_variant.images or ())
    new_images = list(new_variant.images or ())
    if old_images == new_images:
        return []

    variant_id = old_variant.id
    commands: List[UpdateCommand] = []
    working = list(old_images)

    for image in old_images:
        if image not in new_images:
            commands.append(RemoveImage(variant_id=variant_id, image_url=image.url))
            working.remove(image)

    for image in new_images:
        if image not in old_images:
            commands.append(AddExternalImage(variant_id=variant_id, image=image))
            working.append(image)

    commands.extend(build_move_image_updates(variant_id, working, new_images))
    return commands


def build_move_image_updates(
    variant_id: int,
    old_images: Sequence[Image],
    new_images: Sequence[Image],
) -> List[UpdateCommand]:
    """
    Move every image of ``old_images`` that is not already at its index in
    ``new_images``. Both lists must hold the same images.
    """
    if len(old_images) != len(new_images):
        raise StructuralInvariantError(
            f"Old and new image lists must have the same size, "
            f"but they have {len(old_images)} and {len(new_images)} respectively"
        )

    target_index: Dict[Image, int] = {image: index for index, image in enumerate(new_images)}

    commands: List[UpdateCommand] = []
    for index, image in enumerate(old_images):
        if image not in target_index:
            raise StructuralInvariantError(f"Old image [{image}] not found in the new images list.")
        position = target_index[image]
        if position != index:
            commands.append(MoveImageToPosition(variant_id=variant_id, image_url=image.url, position=position))
    return commands
