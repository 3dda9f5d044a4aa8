# nebchat/settings.py
from __future__ import annotations
import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple
from .constants import (
    DEFAULT_LOG_MAX_BYTES, DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_VENDOR_NAME, DEFAULT_BASE_URL, DEFAULT_MODEL_PREFIXES,
)
from nebchat.infra.llm.errors import ConfigurationError

DEFAULT_SETTINGS: Dict[str, Any] = {
    "schema": 1,
    "logging": {
        "level": "INFO",
        "max_bytes": DEFAULT_LOG_MAX_BYTES,
        "backup_count": DEFAULT_LOG_BACKUP_COUNT
    },
    "vendor": {
        "name": DEFAULT_VENDOR_NAME,
        "base_url": DEFAULT_BASE_URL,
        "model_prefixes": list(DEFAULT_MODEL_PREFIXES)
    }
}


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    max_bytes: int
    backup_count: int


@dataclass(frozen=True)
class VendorSettings:
    name: str
    base_url: str
    model_prefixes: Tuple[str, ...]


def _forward_fill(defaults: dict, current: dict) -> Tuple[dict, bool]:
    """Return `current` with every key of `defaults` present, and whether anything was added."""
    out = dict(current)
    changed = False
    for key, default in defaults.items():
        if key not in out:
            out[key] = copy.deepcopy(default)
            changed = True
        elif isinstance(default, dict) and isinstance(out[key], dict):
            out[key], sub_changed = _forward_fill(default, out[key])
            changed = changed or sub_changed
    return out, changed


def load_settings(path: Path) -> dict:
    """Read the settings file, creating it or back-filling new keys on disk as needed."""
    if not path.exists():
        save_settings(path, DEFAULT_SETTINGS)
        return copy.deepcopy(DEFAULT_SETTINGS)
    try:
        current = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path}: not valid JSON ({exc.msg}, line {exc.lineno})") from exc
    if not isinstance(current, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    merged, changed = _forward_fill(DEFAULT_SETTINGS, current)
    if changed:
        save_settings(path, merged)
    return merged


def save_settings(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def logging_settings(cfg: dict) -> LoggingSettings:
    section = cfg.get("logging") or {}
    try:
        return LoggingSettings(
            level=str(section.get("level", "INFO")).upper(),
            max_bytes=int(section.get("max_bytes", DEFAULT_LOG_MAX_BYTES)),
            backup_count=int(section.get("backup_count", DEFAULT_LOG_BACKUP_COUNT)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"logging settings: {exc}") from exc


def vendor_settings(cfg: dict) -> VendorSettings:
    section = cfg.get("vendor") or {}
    raw = section.get("model_prefixes")
    if not isinstance(raw, list):
        raw = list(DEFAULT_MODEL_PREFIXES)
    return VendorSettings(
        name=str(section.get("name") or DEFAULT_VENDOR_NAME),
        base_url=str(section.get("base_url") or ""),
        # blank entries would match every model id
        model_prefixes=tuple(str(p) for p in raw if str(p)),
    )
