"""Configuration from a YAML file and the environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_PATH = Path("~/.config/boardsync/config.yaml")

DEFAULTS: dict[str, Any] = {
    "supabase-url": "",
    "supabase-key": "",
    "notification-timeout": 5.0,
    "log-file": "",
    "log-level": "INFO",
}

ENVIRONMENT = {
    "SUPABASE_URL": "supabase-url",
    "SUPABASE_KEY": "supabase-key",
    "BOARDSYNC_LOG_FILE": "log-file",
    "BOARDSYNC_LOG_LEVEL": "log-level",
}


class ConfigError(Exception):
    """The config file exists but cannot be used."""


def _python_key(config_key: str) -> str:
    """Convert file-style key (hyphenated) to Python-style (underscored)."""
    return config_key.replace("-", "_")


def _coerce(config_key: str, raw: Any) -> Any:
    """Type-coerce a value using the type of its default."""
    default = DEFAULTS.get(config_key)
    if default is None or raw is None:
        return raw
    if isinstance(default, bool):
        return raw if isinstance(raw, bool) else str(raw).lower() in ("true", "yes", "1")
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, int):
        return int(raw)
    return str(raw)


def read_config(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Read config into a flat {python_key: value} dict.

    Starts from DEFAULTS, overlays the YAML file (when present) and then
    the environment. Converts key hyphens to underscores and coerces
    values to the type of their default. Unknown keys are kept as-is.
    """
    environ = os.environ if environ is None else environ
    path = Path(path or DEFAULT_PATH).expanduser()

    raw: dict[str, Any] = dict(DEFAULTS)
    if path.is_file():
        try:
            loaded = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path}: expected a mapping, got {type(loaded).__name__}")
        raw.update({str(k).replace("_", "-"): v for k, v in loaded.items()})

    for env_key, config_key in ENVIRONMENT.items():
        if environ.get(env_key):
            raw[config_key] = environ[env_key]

    try:
        return {_python_key(k): _coerce(k, v) for k, v in raw.items()}
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{path}: {exc}") from exc
