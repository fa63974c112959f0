from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import find_dotenv, load_dotenv

from ..diff.filters import ActionGroup, SyncFilter


# ---------- Typed sections ----------

@dataclass
class AppSection:
    run_id: Optional[str] = None
    fail_on_error: bool = False


@dataclass
class FilterSection:
    mode: str = "all"             # all | include | exclude
    groups: List[str] = field(default_factory=list)


@dataclass
class MetadataSection:
    path: str = ""                # product type YAML/JSON with attribute definitions


@dataclass
class LoggingSection:
    base_dir: str = "logs"
    console_level: str = "INFO"   # INFO..CRITICAL
    file_level: str = "DEBUG"     # DEBUG..CRITICAL


@dataclass
class AppConfig:
    """Typed configuration object built by `load_config`."""
    app: AppSection
    filter: FilterSection
    metadata: MetadataSection
    logging: LoggingSection

    @property
    def run_id(self) -> str:
        """
        Return a stable run identifier for this process.
        Generated lazily when first accessed if not provided.
        """
        if not self.app.run_id:
            self.app.run_id = uuid.uuid4().hex[:12]
        return self.app.run_id

    def build_filter(self) -> SyncFilter:
        return SyncFilter.from_names(self.filter.mode, self.filter.groups)


# ---------- Defaults ----------

_DEFAULT_FILES: Tuple[str, ...] = (
    "./catalogsync.yml",
    os.path.expanduser("~/.config/catalogsync/config.yml"),
    "/etc/catalogsync/config.yml",
)

_DEFAULTS: Dict[str, Any] = {
    "app": {"run_id": None, "fail_on_error": False},
    "filter": {"mode": "all", "groups": []},
    "metadata": {"path": ""},
    "logging": {"base_dir": "logs", "console_level": "INFO", "file_level": "DEBUG"},
}

_FILTER_MODES = ("all", "include", "exclude")


# ---------- Utilities ----------

def _deep_merge(base: Dict[str, Any], ext: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Deep-merge for dicts: maps merge recursively, lists/scalars override.
    `ext` wins over `base`. Returns a new dict.
    """
    if not ext:
        return dict(base)
    out: Dict[str, Any] = dict(base)
    for k, v in ext.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _read_yaml_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping: {path}")
    return data


def _load_first_existing(files: Tuple[str, ...]) -> Dict[str, Any]:
    for p in files:
        if os.path.exists(p):
            return _read_yaml_file(p)
    return {}


def _load_dotenv() -> None:
    """Load a `.env` found from the working directory upwards; real env vars win."""
    path = find_dotenv(usecwd=True)
    if path:
        load_dotenv(path, override=False)


def _env_to_dict(prefix: str = "CSYNC_") -> Dict[str, Any]:
    """
    Convert CSYNC_FILTER__MODE=val to {"filter": {"mode": "val"}} (lowercased keys).
    """
    out: Dict[str, Any] = {}
    plen = len(prefix)
    for key, val in os.environ.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cursor = out
        for part in path[:-1]:
            cursor = cursor.setdefault(part, {})
        cursor[path[-1]] = val
    return out


def _interpolate_env(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values like "${VAR}" with os.environ["VAR"] when present.
    """
    def repl(v: Any) -> Any:
        if isinstance(v, str) and v.startswith("${") and v.endswith("}"):
            return os.environ.get(v[2:-1], "")
        return v

    def walk(obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: walk(repl(v)) for k, v in obj.items()}
        if isinstance(obj, list):
            return [walk(repl(x)) for x in obj]
        return repl(obj)

    return walk(cfg)


def _coerce_types(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce known keys: booleans, and comma separated group lists
    (environment variables only carry strings).
    """
    def to_bool(x: Any) -> bool:
        return str(x).strip().lower() in {"1", "true", "yes", "y", "on"}

    def to_list(x: Any) -> List[str]:
        if x is None:
            return []
        if isinstance(x, str):
            return [p.strip() for p in x.split(",") if p.strip()]
        return [str(p) for p in x]

    def walk(obj: Any, key_path: Tuple[str, ...] = ()) -> Any:
        if key_path == ("filter", "groups"):
            return to_list(obj)
        if isinstance(obj, dict):
            return {k: walk(v, key_path + (k,)) for k, v in obj.items()}
        if key_path[-1:] == ("fail_on_error",):
            return to_bool(obj)
        if key_path == ("filter", "mode") and isinstance(obj, str):
            return obj.strip().lower()
        return obj

    return walk(cfg)


def _validate(cfg: Dict[str, Any]) -> None:
    """
    Validate the filter section: known mode, known group names.
    """
    problems = []
    flt = cfg.get("filter", {}) or {}
    mode = flt.get("mode", "all")
    if mode not in _FILTER_MODES:
        problems.append(f"filter.mode must be one of {', '.join(_FILTER_MODES)} (got {mode!r})")
    for name in flt.get("groups", []) or []:
        try:
            ActionGroup.parse(name)
        except ValueError:
            problems.append(f"filter.groups: unknown action group {name!r}")
    if mode == "include" and not flt.get("groups"):
        problems.append("filter.groups is required when filter.mode is 'include'")
    if problems:
        raise ValueError("Invalid configuration: " + "; ".join(problems))


# ---------- Public API ----------

def load_config(
    cli_overrides: Optional[Dict[str, Any]] = None,
    files: Tuple[str, ...] = _DEFAULT_FILES,
    env_prefix: str = "CSYNC_",
) -> AppConfig:
    """
    Build an AppConfig from (in precedence order):
      1) CLI overrides
      2) Environment variables (prefix CSYNC_, nested via __; `.env` loaded first)
      3) YAML file (first existing)
      4) Built-in defaults

    Also performs:
      - ${ENV_VAR} interpolation
      - type coercion (bool, comma separated lists)
      - validation of the filter section
    """
    file_cfg = _load_first_existing(files)

    _load_dotenv()
    env_cfg = _env_to_dict(env_prefix)

    # defaults <- file <- env <- cli
    merged = _deep_merge(_DEFAULTS, file_cfg)
    merged = _deep_merge(merged, env_cfg)
    merged = _deep_merge(merged, cli_overrides or {})

    merged = _interpolate_env(merged)
    merged = _coerce_types(merged)

    _validate(merged)

    return AppConfig(
        app=AppSection(**merged.get("app", {})),
        filter=FilterSection(**merged.get("filter", {})),
        metadata=MetadataSection(**merged.get("metadata", {})),
        logging=LoggingSection(**merged.get("logging", {})),
    )
