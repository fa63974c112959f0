"""
Fixed ordering of an item's command bag.

Buckets, in order:

1. RemoveVariant of non-master variants
2. SetAttributeInAllVariants
3. AddVariant (when the master changes, a SetSku on the old master placed
   right before an AddVariant stays glued to it)
4. ChangeMasterVariant
5. RemoveVariant of the old master
6. everything else, in its original relative order
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..core.commands import CommandKind, UpdateCommand


def _is_sku_guard(commands: Sequence[UpdateCommand], index: int, old_master_id: int) -> bool:
    command = commands[index]
    return (
        command.kind is CommandKind.SET_SKU
        and command.variant_id == old_master_id
        and index + 1 < len(commands)
        and commands[index + 1].kind is CommandKind.ADD_VARIANT
    )


def prioritize(commands: Sequence[UpdateCommand], old_master_id: int) -> Tuple[UpdateCommand, ...]:
    """Return a new ordered tuple; ``commands`` is left untouched."""
    remove_variants: List[UpdateCommand] = []
    same_for_all: List[UpdateCommand] = []
    add_variants: List[UpdateCommand] = []
    change_master: List[UpdateCommand] = []
    remove_old_master: List[UpdateCommand] = []
    rest: List[UpdateCommand] = []

    master_changes = any(c.kind is CommandKind.CHANGE_MASTER_VARIANT for c in commands)

    for index, command in enumerate(commands):
        kind = command.kind
        if kind is CommandKind.REMOVE_VARIANT:
            if command.id == old_master_id:
                remove_old_master.append(command)
            else:
                remove_variants.append(command)
        elif kind is CommandKind.SET_ATTRIBUTE_IN_ALL_VARIANTS:
            same_for_all.append(command)
        elif kind is CommandKind.ADD_VARIANT or (master_changes and _is_sku_guard(commands, index, old_master_id)):
            add_variants.append(command)
        elif kind is CommandKind.CHANGE_MASTER_VARIANT:
            change_master.append(command)
        else:
            rest.append(command)

    return tuple(remove_variants + same_for_all + add_variants + change_master + remove_old_master + rest)
