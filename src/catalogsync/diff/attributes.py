"""
Attribute differ for one variant.

Which command flavour is emitted depends on the attribute's metadata:
same-for-all attributes are set on every variant at once
(SetAttributeInAllVariants), the others on the variant (SetAttribute).
An unset is the same command with ``value=None``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from ..core.commands import CommandKind, SetAttribute, SetAttributeInAllVariants, UpdateCommand
from ..core.errors import BuildUpdateActionError, Diagnostic, DiffContext, ErrorKind
from ..core.models import AttributeMetadata, Variant, VariantDraft
from .fields import DiffResult

ATTRIBUTE_NOT_IN_METADATA = "Cannot find the attribute definition for '{name}'."
NULL_ATTRIBUTE = "Attribute draft is null."
FAILED_TO_BUILD_ATTRIBUTE_UPDATE = (
    "Failed to build a setAttribute/setAttributeInAllVariants update action for the attribute "
    "'{name}' in the variant with key '{variant_key}'. Reason: {reason}"
)


def _metadata_for(name: str, metadata: Mapping[str, AttributeMetadata]) -> AttributeMetadata:
    found = metadata.get(name)
    if found is None:
        raise BuildUpdateActionError(ATTRIBUTE_NOT_IN_METADATA.format(name=name), ErrorKind.METADATA_MISSING)
    return found


def build_set_attribute(
    variant_id: int,
    name: str,
    value: Any,
    metadata: Mapping[str, AttributeMetadata],
) -> UpdateCommand:
    if _metadata_for(name, metadata).is_same_for_all:
        return SetAttributeInAllVariants(name=name, value=value)
    return SetAttribute(variant_id=variant_id, name=name, value=value)


def build_attribute_update(
    variant_id: int,
    old_value: Any,
    name: str,
    new_value: Any,
    metadata: Mapping[str, AttributeMetadata],
) -> Optional[UpdateCommand]:
    """Compare one attribute value (absent old = ``None``); metadata is checked first."""
    meta = _metadata_for(name, metadata)
    if old_value == new_value:
        return None
    if meta.is_same_for_all:
        return SetAttributeInAllVariants(name=name, value=new_value)
    return SetAttribute(variant_id=variant_id, name=name, value=new_value)


def build_attribute_updates(
    old_variant: Variant,
    new_variant: VariantDraft,
    metadata: Mapping[str, AttributeMetadata],
    context: DiffContext,
) -> DiffResult:
    variant_id = old_variant.id
    commands: List[UpdateCommand] = []
    diagnostics: List[Diagnostic] = []

    def report(name: Optional[str], exc: BuildUpdateActionError) -> None:
        message = FAILED_TO_BUILD_ATTRIBUTE_UPDATE.format(
            name=name, variant_key=new_variant.key, reason=exc
        )
        diagnostics.append(Diagnostic.error(exc.kind, context.child(attribute=name), message, exc))

    new_attributes = tuple(new_variant.attributes or ())
    new_names = {a.name for a in new_attributes if a is not None}

    for old_attribute in old_variant.attributes:
        if old_attribute.name in new_names:
            continue
        try:
            commands.append(build_set_attribute(variant_id, old_attribute.name, None, metadata))
        except BuildUpdateActionError as exc:
            report(old_attribute.name, exc)

    old_values: Dict[str, Any] = {a.name: a.value for a in old_variant.attributes}
    for new_attribute in new_attributes:
        if new_attribute is None:
            report(None, BuildUpdateActionError(NULL_ATTRIBUTE, ErrorKind.NULL_ELEMENT))
            continue
        try:
            command = build_attribute_update(
                variant_id,
                old_values.get(new_attribute.name),
                new_attribute.name,
                new_attribute.value,
                metadata,
            )
        except BuildUpdateActionError as exc:
            report(new_attribute.name, exc)
            continue
        if command is not None:
            commands.append(command)

    return commands, diagnostics


def drop_collected_same_for_all(
    commands: Iterable[UpdateCommand],
    collected: Set[str],
) -> List[UpdateCommand]:
    """
    Keep only the first SetAttributeInAllVariants per attribute name across an
    item's variants. ``collected`` holds the names already emitted and is
    updated in place.
    """
    kept: List[UpdateCommand] = []
    for command in commands:
        if command.kind is CommandKind.SET_ATTRIBUTE_IN_ALL_VARIANTS:
            if command.name in collected:
                continue
            collected.add(command.name)
        kept.append(command)
    return kept
