"""
Generic custom type / custom fields differ.

Shared by prices and assets; the caller passes a builder that knows how to
address its resource (price id, or variant id + asset key).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..core.commands import UpdateCommand
from ..core.errors import BuildUpdateActionError, Diagnostic, DiffContext, ErrorKind
from ..core.models import CustomFields, Reference
from ..core.references import EMPTY_CACHE, ReferenceCache, canonical
from .fields import DiffResult

CUSTOM_TYPE_IDS_NOT_SET = "Custom type ids are not set for both the old and new {resource}."
CUSTOM_TYPE_ID_IS_BLANK = "New resource's custom type id is blank (empty/null)."
CUSTOM_FIELDS_BUILD_FAILED = "Failed to build custom fields update actions on the {resource}. Reason: {reason}"


class CustomCommandBuilder(Protocol):
    def set_type(self, type_: Optional[Reference], fields: Optional[Dict[str, Any]]) -> UpdateCommand:
        ...

    def set_field(self, name: str, value: Any) -> UpdateCommand:
        ...


def build_custom_updates(
    old: Optional[CustomFields],
    new: Optional[CustomFields],
    builder: CustomCommandBuilder,
    context: DiffContext,
    resource: str,
    cache: ReferenceCache = EMPTY_CACHE,
) -> DiffResult:
    """
    - both set: same type -> per-field diff; other type -> set type with fields
    - only new set: set type with fields (new type id must not be blank)
    - only old set: remove the custom type
    """
    if old is not None and new is not None:
        try:
            return _build_non_null_updates(old, new, builder, resource, cache), []
        except BuildUpdateActionError as exc:
            message = CUSTOM_FIELDS_BUILD_FAILED.format(resource=resource, reason=exc)
            return [], [Diagnostic.error(exc.kind, context, message, exc)]

    if new is not None:
        if not canonical(new.type, cache):
            message = CUSTOM_FIELDS_BUILD_FAILED.format(resource=resource, reason=CUSTOM_TYPE_ID_IS_BLANK)
            return [], [Diagnostic.error(ErrorKind.VALIDATION, context, message)]
        return [builder.set_type(new.type, new.fields)], []

    if old is not None:
        return [builder.set_type(None, None)], []

    return [], []


def _build_non_null_updates(
    old: CustomFields,
    new: CustomFields,
    builder: CustomCommandBuilder,
    resource: str,
    cache: ReferenceCache,
) -> List[UpdateCommand]:
    old_type = canonical(old.type, cache)
    new_type = canonical(new.type, cache)

    if old_type != new_type:
        return [builder.set_type(new.type, new.fields)]

    if not old_type:
        raise BuildUpdateActionError(
            CUSTOM_TYPE_IDS_NOT_SET.format(resource=resource),
            ErrorKind.CUSTOM_FIELD_AMBIGUOUS,
        )
    if new.fields is None:
        return [builder.set_type(new.type, None)]
    return build_set_field_updates(old.fields or {}, new.fields, builder)


def build_set_field_updates(
    old_fields: Dict[str, Any],
    new_fields: Dict[str, Any],
    builder: CustomCommandBuilder,
) -> List[UpdateCommand]:
    commands = [
        builder.set_field(name, value)
        for name, value in new_fields.items()
        if value != old_fields.get(name)
    ]
    commands.extend(
        builder.set_field(name, None)
        for name in old_fields
        if name not in new_fields
    )
    return commands
