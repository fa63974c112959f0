"""
Catalog item diff engine.

Pipeline per item:
  field differs (per action group) -> variant reconciliation -> prioritize
  -> publish/unpublish decision -> before_update callback -> forward diagnostics

- Side-effect free apart from the diagnostic sink and logging.
- One item never affects another: ``run`` isolates every draft like the
  importer isolates rows (SKIP / ERROR / EXCEPTION instead of aborting).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.commands import Publish, Unpublish, UpdateCommand
from ..core.errors import (
    Diagnostic,
    DiagnosticSink,
    DiffContext,
    DraftValidationError,
    ErrorKind,
    LoggingSink,
    StructuralInvariantError,
    forward,
)
from ..core.models import AttributeMetadata, CatalogItem, CatalogItemDraft
from ..core.payloads import PayloadError
from ..core.references import EMPTY_CACHE, ReferenceCache
from .fields import (
    build_category_updates,
    build_change_name,
    build_change_slug,
    build_set_description,
    build_set_meta_description,
    build_set_meta_keywords,
    build_set_meta_title,
    build_set_search_keywords,
    build_set_tax_category,
    build_transition_state,
)
from .filters import ActionGroup, SyncFilter, build_if_passes
from .prioritizer import prioritize
from .reconciler import VariantSetReconciler
from .variants import VariantDiffer

BeforeUpdate = Callable[[List[UpdateCommand], CatalogItemDraft, CatalogItem], Sequence[UpdateCommand]]

NULL_DRAFT = "Item draft is null."
BLANK_DRAFT_KEY = "Item draft with name {name} has no key."
NULL_VARIANT_DRAFT = "Item draft with key '{key}' has a null variant at position {position}."
BLANK_VARIANT_DRAFT_KEY = "Item draft with key '{key}' has a variant without key at position {position}."


@dataclass(frozen=True)
class DiffOutcome:
    commands: Tuple[UpdateCommand, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    aborted: bool = False

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)

    def to_actions(self) -> List[Dict[str, Any]]:
        return [c.to_action() for c in self.commands]


@dataclass(frozen=True)
class ItemResult:
    """Result for one draft of a batch."""
    index: int
    key: Optional[str]
    status: str
    commands: Tuple[UpdateCommand, ...] = field(default=())
    reason: str = ""
    error: str = ""


class _NullAdapter(logging.LoggerAdapter):
    def __init__(self) -> None:
        base = logging.getLogger("catalogsync.null")
        if not base.handlers:
            base.addHandler(logging.NullHandler())
        base.propagate = False
        super().__init__(base, {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        return msg, kwargs


def build_publish_update(
    old: CatalogItem, new: CatalogItemDraft, has_other_updates: bool
) -> Optional[UpdateCommand]:
    """
    want / have:
      True  / False -> Publish
      False / True  -> Unpublish
      True  / True  -> Publish when there are other updates or staged changes
      otherwise nothing
    """
    want = bool(new.publish)
    have = bool(old.published)
    if want and not have:
        return Publish()
    if have and not want:
        return Unpublish()
    if want and have and (has_other_updates or old.has_staged_changes):
        return Publish()
    return None


def _raw_key(raw: Any) -> Optional[str]:
    if isinstance(raw, CatalogItemDraft):
        return raw.key
    if isinstance(raw, Mapping):
        return raw.get("key")
    return None


def validate_draft(draft: Optional[CatalogItemDraft]) -> None:
    """Raise DraftValidationError when a draft cannot be diffed at all."""
    if draft is None:
        raise DraftValidationError(NULL_DRAFT)
    if draft.key is None or not draft.key.strip():
        raise DraftValidationError(BLANK_DRAFT_KEY.format(name=draft.name))
    for position, variant in enumerate(draft.all_variants()):
        if variant is None:
            raise DraftValidationError(NULL_VARIANT_DRAFT.format(key=draft.key, position=position))
        if variant.key is None or not variant.key.strip():
            raise DraftValidationError(BLANK_VARIANT_DRAFT_KEY.format(key=draft.key, position=position))


class ProductDiffEngine:
    """
    Holds immutable configuration only; every ``diff`` call builds its own
    state, so one engine can serve concurrent callers.
    """

    def __init__(
        self,
        attribute_metadata: Optional[Mapping[str, AttributeMetadata]] = None,
        sync_filter: Optional[SyncFilter] = None,
        cache: ReferenceCache = EMPTY_CACHE,
        sink: Optional[DiagnosticSink] = None,
        logger: Optional[logging.LoggerAdapter] = None,
        before_update: Optional[BeforeUpdate] = None,
    ) -> None:
        self.sync_filter = sync_filter or SyncFilter.all()
        self.cache = cache
        self.log = logger or _NullAdapter()
        self.sink = sink or LoggingSink(self.log)
        self.before_update = before_update
        self.reconciler = VariantSetReconciler(VariantDiffer(self.sync_filter, attribute_metadata, cache))

    def build_field_updates(self, old: CatalogItem, new: CatalogItemDraft) -> List[UpdateCommand]:
        cache = self.cache
        builders = (
            (ActionGroup.NAME, lambda: build_change_name(old, new)),
            (ActionGroup.DESCRIPTION, lambda: build_set_description(old, new)),
            (ActionGroup.SLUG, lambda: build_change_slug(old, new)),
            (ActionGroup.SEARCH_KEYWORDS, lambda: build_set_search_keywords(old, new)),
            (ActionGroup.META_TITLE, lambda: build_set_meta_title(old, new)),
            (ActionGroup.META_DESCRIPTION, lambda: build_set_meta_description(old, new)),
            (ActionGroup.META_KEYWORDS, lambda: build_set_meta_keywords(old, new)),
            (ActionGroup.TAX_CATEGORY, lambda: build_set_tax_category(old, new, cache)),
            (ActionGroup.STATE, lambda: build_transition_state(old, new, cache)),
        )
        commands: List[UpdateCommand] = []
        for group, build in builders:
            if self.sync_filter.passes(group):
                command = build()
                if command is not None:
                    commands.append(command)
        commands.extend(
            build_if_passes(self.sync_filter, ActionGroup.CATEGORIES, lambda: build_category_updates(old, new, cache))
        )
        return commands

    def _build(
        self,
        old: CatalogItem,
        new: CatalogItemDraft,
        context: DiffContext,
        diagnostics: List[Diagnostic],
    ) -> Tuple[UpdateCommand, ...]:
        bag = self.build_field_updates(old, new)
        variant_commands, variant_diagnostics = self.reconciler.reconcile(old, new, context)
        bag.extend(variant_commands)
        diagnostics.extend(variant_diagnostics)

        ordered = list(prioritize(bag, old.master_variant.id))
        publish = build_publish_update(old, new, bool(ordered))
        if publish is not None:
            ordered.append(publish)

        if self.before_update is not None:
            ordered = list(self.before_update(list(ordered), new, old))
        return tuple(ordered)

    def diff(self, old: CatalogItem, new: CatalogItemDraft) -> DiffOutcome:
        """Never raises: a broken item comes back aborted with an error diagnostic."""
        context = DiffContext(item_key=new.key or old.key)
        diagnostics: List[Diagnostic] = []
        try:
            commands = self._build(old, new, context, diagnostics)
            aborted = False
        except StructuralInvariantError as e:
            diagnostics.append(Diagnostic.error(ErrorKind.STRUCTURAL, context, str(e), e))
            commands, aborted = (), True
        except Exception as e:
            diagnostics.append(
                Diagnostic.error(ErrorKind.UNEXPECTED, context, f"Unexpected error while diffing: {e}", e)
            )
            commands, aborted = (), True

        forward(diagnostics, self.sink)
        self.log.debug("Item diffed: key=%s commands=%d aborted=%s", context.item_key, len(commands), aborted)
        return DiffOutcome(commands=commands, diagnostics=tuple(diagnostics), aborted=aborted)

    def run(
        self,
        drafts: Iterable[Any],
        existing_items: Iterable[CatalogItem],
        parse: Optional[Callable[[Any], CatalogItemDraft]] = None,
    ) -> Tuple[List[ItemResult], Dict[str, int]]:
        """
        Diff every draft against the existing item with the same key.

        With ``parse``, ``drafts`` holds raw payloads parsed one at a time; a
        payload that cannot be parsed is skipped like an invalid draft.
        """
        results: List[ItemResult] = []
        counts: Dict[str, int] = {}

        existing = {item.key: item for item in existing_items}
        self.log.debug("Indexed existing items", extra={"existing_len": len(existing)})

        for idx, raw in enumerate(drafts):
            key = _raw_key(raw)
            try:
                draft = parse(raw) if parse is not None and raw is not None else raw
                validate_draft(draft)

                current = existing.get(key)
                if current is None:
                    self._accumulate(results, counts, ItemResult(index=idx, key=key, status="CREATED"))
                    self.log.info("Item will create: key=%s", key)
                    continue

                outcome = self.diff(current, draft)
                if outcome.aborted:
                    error = next((d.message for d in outcome.diagnostics if d.is_error), "")
                    res = ItemResult(index=idx, key=key, status="ERROR", error=error)
                    self._accumulate(results, counts, res)
                    self.log.error("Item error: key=%s %s", key, error)
                elif outcome.commands:
                    res = ItemResult(index=idx, key=key, status="UPDATED", commands=outcome.commands)
                    self._accumulate(results, counts, res)
                    self.log.info("Item will update: key=%s (%d actions)", key, len(outcome.commands))
                else:
                    self._accumulate(results, counts, ItemResult(index=idx, key=key, status="UNCHANGED"))
                    self.log.info("Item unchanged: key=%s", key)

            except (DraftValidationError, PayloadError) as e:
                self._accumulate(results, counts, ItemResult(index=idx, key=key, status="SKIP", reason=str(e)))
                self.log.warning("Item skipped: %s", e)
            except Exception as e:
                res = ItemResult(index=idx, key=key, status="EXCEPTION", error=str(e))
                self._accumulate(results, counts, res)
                self.log.exception("Item exception: %s", e)

        return results, counts

    @staticmethod
    def _accumulate(results: List[ItemResult], counts: Dict[str, int], res: ItemResult) -> None:
        results.append(res)
        counts[res.status] = counts.get(res.status, 0) + 1
