"""
Central logging for catalogsync.

- Console handler on stderr (stdout carries the actions), INFO and up
- Daily rotated file: <base_dir>/app.log
- Per-run file: <base_dir>/YYYY-MM-DD/<action>_<run_id>.log
- run_id / action / item are filled with "-" when a record has none
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from datetime import date
from typing import Any, Dict, Optional

FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | run=%(run_id)s action=%(action)s item=%(item)s | %(message)s"


class ContextDefaultsFilter(logging.Filter):
    """Give every record the context fields FORMAT expects."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in ("run_id", "action", "item"):
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


def _level(name: str, default: int) -> int:
    return getattr(logging, str(name).upper(), default)


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FORMAT))
    handler.addFilter(ContextDefaultsFilter())
    logger.addHandler(handler)


def build_logger(
    *,
    name: str = "catalogsync",
    run_id: str,
    action: str,
    base_dir: str = "logs",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    extra: Optional[Dict[str, Any]] = None,
) -> logging.LoggerAdapter:
    """
    Return an adapter on ``<name>.<action>.<run_id>``.

    The base logger ``<name>`` is rebuilt on every call (console + app.log)
    so it follows the current stderr and base_dir. The per-run child only
    gets its file handler once and propagates to the base.
    """
    file_lvl = _level(file_level, logging.DEBUG)
    os.makedirs(base_dir, exist_ok=True)

    base = logging.getLogger(name)
    base.setLevel(logging.DEBUG)
    for h in list(base.handlers):
        base.removeHandler(h)
        h.close()
    _attach(base, logging.StreamHandler(), _level(console_level, logging.INFO))
    _attach(
        base,
        logging.handlers.TimedRotatingFileHandler(
            os.path.join(base_dir, "app.log"), when="midnight", backupCount=14, encoding="utf-8"
        ),
        file_lvl,
    )

    child = logging.getLogger(f"{name}.{action}.{run_id}")
    child.setLevel(logging.DEBUG)
    if not child.handlers:
        run_dir = os.path.join(base_dir, date.today().isoformat())
        os.makedirs(run_dir, exist_ok=True)
        _attach(child, logging.FileHandler(os.path.join(run_dir, f"{action}_{run_id}.log"), encoding="utf-8"), file_lvl)

    adapter = logging.LoggerAdapter(
        child,
        {"run_id": run_id, "action": action, "item": (extra or {}).get("item") or "-"},
    )
    adapter.debug("Logger initialised")
    return adapter
