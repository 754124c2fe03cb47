"""Load and validate .checktree/config.yaml."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml


PREVIEW_MODES = ("manual", "ephemeral", "sticky")

# Default config values
DEFAULTS: dict[str, Any] = {
    "sync": {
        "toggle_debounce_ms": 30,
        "edit_debounce_ms": 300,
        "scroll_debounce_ms": 10,
    },
    "tree": {
        "show_headers": True,
    },
    "preview": {
        "default_mode": "manual",
        "file_modes": {},
    },
    "logging": {
        "verbose": False,
    },
}

CONFIG_DIR = ".checktree"
CONFIG_FILE = "config.yaml"


class ConfigError(Exception):
    """Raised when config is invalid."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override wins on conflicts."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate(config: dict) -> None:
    """Validate sync timings and preview modes."""
    sync = config.get("sync")
    if not isinstance(sync, dict):
        raise ConfigError("'sync' must be a mapping")
    for key in ("toggle_debounce_ms", "edit_debounce_ms", "scroll_debounce_ms"):
        val = sync.get(key)
        if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
            raise ConfigError(f"'sync.{key}' must be a positive number, got {val!r}")
    if sync["toggle_debounce_ms"] >= sync["edit_debounce_ms"]:
        raise ConfigError("'sync.toggle_debounce_ms' must be shorter than 'sync.edit_debounce_ms'")
    if sync["scroll_debounce_ms"] >= sync["edit_debounce_ms"]:
        raise ConfigError("'sync.scroll_debounce_ms' must be shorter than 'sync.edit_debounce_ms'")

    preview = config.get("preview")
    if not isinstance(preview, dict):
        raise ConfigError("'preview' must be a mapping")
    mode = preview.get("default_mode")
    if mode not in PREVIEW_MODES:
        raise ConfigError(
            f"Unsupported preview mode '{mode}'. Built-in: {', '.join(PREVIEW_MODES)}."
        )
    file_modes = preview.get("file_modes") or {}
    if not isinstance(file_modes, dict):
        raise ConfigError("'preview.file_modes' must be a mapping")
    bad = sorted(k for k, v in file_modes.items() if v not in PREVIEW_MODES)
    if bad:
        raise ConfigError(f"'preview.file_modes' has unsupported modes for: {bad}")

    if not isinstance(config.get("tree", {}).get("show_headers"), bool):
        raise ConfigError("'tree.show_headers' must be true or false")


def config_path_for(project_root: Path | None = None) -> Path:
    """Return the config file location under project_root (cwd if None)."""
    root = Path(project_root) if project_root else Path.cwd()
    return root / CONFIG_DIR / CONFIG_FILE


def load_config(project_root: Path | None = None, path: Path | None = None) -> dict:
    """Load config from *path* or .checktree/config.yaml under project_root.

    A missing file is not an error: callers get DEFAULTS. An explicit
    *path* that does not exist raises :class:`ConfigError`.
    """
    config_path = Path(path) if path else config_path_for(project_root)

    if not config_path.exists():
        if path:
            raise ConfigError(f"Config not found: {config_path}")
        config = _deep_merge(copy.deepcopy(DEFAULTS), {})
        _validate(config)
        return config

    with open(config_path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    config = _deep_merge(copy.deepcopy(DEFAULTS), raw)
    _validate(config)
    return config


def sync_timings(config: dict) -> dict[str, float]:
    """Return the three debounce lanes in seconds: toggle, edit, scroll."""
    sync = config["sync"]
    return {
        "toggle": sync["toggle_debounce_ms"] / 1000.0,
        "edit": sync["edit_debounce_ms"] / 1000.0,
        "scroll": sync["scroll_debounce_ms"] / 1000.0,
    }


def preview_mode_for(config: dict, doc_id: str) -> str:
    """Effective preview mode for a document: per-file override, else default."""
    preview = config.get("preview", {})
    mode = (preview.get("file_modes") or {}).get(doc_id)
    if mode in PREVIEW_MODES:
        return mode
    return preview.get("default_mode", "manual")


def set_preview_mode(config_path: Path, doc_id: str, mode: str) -> dict:
    """Persist a per-document preview mode. ``"default"`` removes the override.

    Returns the reloaded, validated config.
    """
    if mode != "default" and mode not in PREVIEW_MODES:
        raise ConfigError(
            f"Unsupported preview mode '{mode}'. Built-in: default, {', '.join(PREVIEW_MODES)}."
        )

    config_path = Path(config_path)
    raw: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    preview = raw.setdefault("preview", {})
    file_modes = preview.get("file_modes") or {}
    if mode == "default":
        file_modes.pop(doc_id, None)
    else:
        file_modes[doc_id] = mode
    preview["file_modes"] = file_modes

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(yaml.safe_dump(raw, sort_keys=False))
    return load_config(path=config_path)
