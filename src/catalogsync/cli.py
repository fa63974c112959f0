"""
Command-line interface for catalogsync.

Usage (examples):
  - Diff one item, print the update actions as JSON:
      catalogsync diff --old ./data/current.json --new ./data/draft.json \
        --metadata ./data/product-type.yml

  - Only some action groups:
      catalogsync diff --old current.json --new draft.json --only prices images

  - Plan a batch (lists of items and drafts), print a summary:
      catalogsync plan --old ./data/current-items.json --new ./data/drafts.yml
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .core.config import AppConfig, load_config
from .core.errors import LoggingSink
from .core.logging_setup import build_logger
from .core.models import AttributeMetadata
from .core.payloads import PayloadError, load_attribute_metadata, parse_draft, parse_item
from .diff.engine import ProductDiffEngine


def _read_document(path: str) -> Any:
    """
    Read a JSON or YAML document, picked by file extension.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with p.open("r", encoding="utf-8") as f:
        if p.suffix.lower() in (".yml", ".yaml"):
            return yaml.safe_load(f)
        return json.load(f)


def _read_list(path: str) -> List[Dict[str, Any]]:
    data = _read_document(path)
    if isinstance(data, dict):
        data = data.get("results", [data])
    if not isinstance(data, list):
        raise PayloadError(f"Expected a list of objects in {path}")
    return data


def _summarize_counts(counts: Dict[str, int]) -> str:
    keys = ["CREATED", "UPDATED", "UNCHANGED", "SKIP", "ERROR", "EXCEPTION"]
    return " | ".join(f"{k}={counts.get(k, 0)}" for k in keys)


def _exit_code_from_counts(counts: Dict[str, int]) -> int:
    if counts.get("ERROR", 0) or counts.get("EXCEPTION", 0):
        return 2
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="catalogsync", description="Catalog item diff engine")

    sub = p.add_subparsers(dest="cmd", required=True)

    d = sub.add_parser("diff", help="Diff one existing item against its draft")
    d.add_argument("--old", required=True, help="Existing item (.json or .yml)")
    d.add_argument("--new", required=True, help="Item draft (.json or .yml)")

    b = sub.add_parser("plan", help="Diff a batch of drafts against existing items")
    b.add_argument("--old", required=True, help="Existing items (list, .json or .yml)")
    b.add_argument("--new", required=True, help="Item drafts (list, .json or .yml)")

    for s in (d, b):
        s.add_argument("--metadata", default=None, help="Product type file with attribute definitions")
        groups = s.add_mutually_exclusive_group()
        groups.add_argument("--only", nargs="+", metavar="GROUP", help="Only build these action groups")
        groups.add_argument("--exclude", nargs="+", metavar="GROUP", help="Skip these action groups")
        s.add_argument("--fail-on-error", action="store_true", help="Exit 2 when any error is reported")

        # Logging
        s.add_argument("--logs-dir", default=None, help="Logs base directory")
        s.add_argument("--console-level", default=None, help="Console log level (INFO..CRITICAL)")
        s.add_argument("--file-level", default=None, help="File log level (DEBUG..CRITICAL)")

    return p


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.only:
        overrides["filter"] = {"mode": "include", "groups": list(args.only)}
    elif args.exclude:
        overrides["filter"] = {"mode": "exclude", "groups": list(args.exclude)}
    if args.metadata:
        overrides["metadata"] = {"path": args.metadata}
    if args.fail_on_error:
        overrides["app"] = {"fail_on_error": True}
    logging_cfg = {
        k: v
        for k, v in (
            ("base_dir", args.logs_dir),
            ("console_level", args.console_level),
            ("file_level", args.file_level),
        )
        if v
    }
    if logging_cfg:
        overrides["logging"] = logging_cfg
    return overrides


def _load_metadata(cfg: AppConfig) -> Dict[str, AttributeMetadata]:
    if not cfg.metadata.path:
        return {}
    return load_attribute_metadata(cfg.metadata.path)


def _diff_cmd(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = build_logger(
        run_id=cfg.run_id,
        action="diff",
        base_dir=cfg.logging.base_dir,
        console_level=cfg.logging.console_level,
        file_level=cfg.logging.file_level,
    )
    try:
        old = parse_item(_read_document(args.old))
        new = parse_draft(_read_document(args.new))
        metadata = _load_metadata(cfg)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Cannot load inputs: %s", e)
        return 2

    logger.info("Diffing item key=%s (%d attribute definitions)", new.key, len(metadata))
    engine = ProductDiffEngine(
        attribute_metadata=metadata,
        sync_filter=cfg.build_filter(),
        sink=LoggingSink(logger),
        logger=logger,
    )
    outcome = engine.diff(old, new)
    print(json.dumps(outcome.to_actions(), indent=2, ensure_ascii=False))

    logger.info(
        "Diff summary: actions=%d diagnostics=%d aborted=%s",
        len(outcome.commands),
        len(outcome.diagnostics),
        outcome.aborted,
    )
    if outcome.aborted or (cfg.app.fail_on_error and outcome.has_errors):
        return 2
    return 0


def _plan_cmd(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = build_logger(
        run_id=cfg.run_id,
        action="plan",
        base_dir=cfg.logging.base_dir,
        console_level=cfg.logging.console_level,
        file_level=cfg.logging.file_level,
    )
    try:
        existing = [parse_item(i) for i in _read_list(args.old)]
        drafts = _read_list(args.new)
        metadata = _load_metadata(cfg)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Cannot load inputs: %s", e)
        return 2

    logger.info("Loaded %s drafts and %s existing items", len(drafts), len(existing))
    engine = ProductDiffEngine(
        attribute_metadata=metadata,
        sync_filter=cfg.build_filter(),
        sink=LoggingSink(logger),
        logger=logger,
    )
    results, counts = engine.run(drafts, existing, parse=parse_draft)
    for res in results:
        detail = f"{len(res.commands)} actions" if res.status == "UPDATED" else (res.reason or res.error)
        print(f"{res.index}\t{res.key or '-'}\t{res.status}\t{detail}".rstrip())
    logger.info("Plan summary: %s", _summarize_counts(counts))
    print(_summarize_counts(counts))
    return _exit_code_from_counts(counts)


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        cfg = load_config(_cli_overrides(args))
    except ValueError as e:
        print(f"catalogsync: {e}", file=sys.stderr)
        return 2

    if args.cmd == "diff":
        return _diff_cmd(args, cfg)
    if args.cmd == "plan":
        return _plan_cmd(args, cfg)

    parser.error("Unknown command")  # pragma: no cover
    return 2  # pragma: no cover


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
