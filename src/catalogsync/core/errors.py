"""
Error taxonomy and diagnostics for catalogsync.

Differs never call back into the caller while they run: they return
``(commands, diagnostics)``. The engine merges the diagnostics and forwards
them to a :class:`DiagnosticSink` once per item, after every differ ran.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    METADATA_MISSING = "metadata_missing"
    NULL_ELEMENT = "null_element"
    CUSTOM_FIELD_AMBIGUOUS = "custom_field_ambiguous"
    DUPLICATE_KEY = "duplicate_key"
    STRUCTURAL = "structural"
    UNEXPECTED = "unexpected"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


# ---------- Exceptions ----------

class CatalogSyncError(Exception):
    """Base error for catalogsync."""


class BuildUpdateActionError(CatalogSyncError):
    """A single element (attribute, price, asset, custom field) could not be diffed."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.VALIDATION) -> None:
        super().__init__(message)
        self.kind = kind


class StructuralInvariantError(CatalogSyncError):
    """The caller broke an invariant the engine relies on (e.g. duplicate images)."""


class DraftValidationError(CatalogSyncError):
    """A draft is not usable at all (no key, null variant, blank variant key)."""


# ---------- Diagnostics ----------

@dataclass(frozen=True)
class DiffContext:
    """Identifies what a diagnostic is about, from the item down to one element."""
    item_key: Optional[str] = None
    variant_key: Optional[str] = None
    attribute: Optional[str] = None
    asset_key: Optional[str] = None
    price: Optional[str] = None

    def child(self, **kwargs: Any) -> "DiffContext":
        return replace(self, **kwargs)

    def __str__(self) -> str:
        parts = [f"item={self.item_key}"]
        for label in ("variant_key", "attribute", "asset_key", "price"):
            value = getattr(self, label)
            if value is not None:
                parts.append(f"{label}={value}")
        return " ".join(parts)


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    kind: ErrorKind
    context: DiffContext
    message: str
    cause: Optional[BaseException] = None

    @classmethod
    def error(
        cls,
        kind: ErrorKind,
        context: DiffContext,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> "Diagnostic":
        return cls(Severity.ERROR, kind, context, message, cause)

    @classmethod
    def warning(cls, kind: ErrorKind, context: DiffContext, message: str) -> "Diagnostic":
        return cls(Severity.WARNING, kind, context, message)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


# ---------- Sinks ----------

class DiagnosticSink(Protocol):
    def on_error(self, context: DiffContext, message: str, cause: Optional[BaseException]) -> None:
        ...

    def on_warning(self, context: DiffContext, message: str) -> None:
        ...


class LoggingSink:
    """Forward diagnostics to a logger (errors carry the cause as exc_info)."""

    def __init__(self, logger: Optional[logging.LoggerAdapter] = None) -> None:
        self.log = logger or logging.getLogger("catalogsync.diagnostics")

    def on_error(self, context: DiffContext, message: str, cause: Optional[BaseException]) -> None:
        self.log.error("%s | %s", context, message, exc_info=cause)

    def on_warning(self, context: DiffContext, message: str) -> None:
        self.log.warning("%s | %s", context, message)


class CollectingSink:
    """Keep every forwarded diagnostic in memory."""

    def __init__(self) -> None:
        self.errors: List[tuple] = []
        self.warnings: List[tuple] = []

    def on_error(self, context: DiffContext, message: str, cause: Optional[BaseException]) -> None:
        self.errors.append((context, message, cause))

    def on_warning(self, context: DiffContext, message: str) -> None:
        self.warnings.append((context, message))


def forward(diagnostics: Sequence[Diagnostic], sink: DiagnosticSink) -> None:
    """Deliver diagnostics to the sink in the order they were produced."""
    for d in diagnostics:
        if d.is_error:
            sink.on_error(d.context, d.message, d.cause)
        else:
            sink.on_warning(d.context, d.message)
