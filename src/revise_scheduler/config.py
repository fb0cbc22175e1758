"""Scheduler settings.

Settings live in the ``[plugin.settings]`` table of the plugin descriptor::

    [plugin]
    id    = "revise-scheduler"
    name  = "Revise Scheduler"
    entry = "revise_scheduler.revise"
    hooks = ["on_load", "on_document_changed", "on_checkbox_metadata_changed", "on_unload"]

    [plugin.settings]
    ladder      = "spaced"     # or "classic" (stops after #revise_90)
    trigger     = "modify"     # or "checkbox" (only react to freshly ticked boxes)
    debounce_ms = 350

Environment variables (all optional; direct kwargs take precedence):
    REVISE_LADDER       – ladder preset name
    REVISE_TRIGGER      – ``modify`` or ``checkbox``
    REVISE_DEBOUNCE_MS  – quiet period before a changed note is processed
    REVISE_GRACE_MS     – how long our own writes are ignored
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from revise_scheduler.stages import LADDERS, Ladder, get_ladder

TRIGGERS = ("modify", "checkbox")

_ENV_VARS = {
    "ladder": "REVISE_LADDER",
    "trigger": "REVISE_TRIGGER",
    "debounce_ms": "REVISE_DEBOUNCE_MS",
    "self_write_grace_ms": "REVISE_GRACE_MS",
}


class ConfigError(ValueError):
    """Raised for unknown keys or out-of-range setting values."""


@dataclass
class SchedulerConfig:
    ladder: str = "spaced"
    trigger: str = "modify"
    debounce_ms: int = 350
    self_write_grace_ms: int = 50
    extension: str = ".md"
    poll_interval: float = 1.0

    def __post_init__(self) -> None:
        if self.ladder.lower() not in LADDERS:
            raise ConfigError(f"Unknown ladder {self.ladder!r}; expected one of {sorted(LADDERS)}")
        if self.trigger not in TRIGGERS:
            raise ConfigError(f"Unknown trigger {self.trigger!r}; expected one of {list(TRIGGERS)}")
        if self.debounce_ms < 0 or self.self_write_grace_ms < 0:
            raise ConfigError("Delays must not be negative")
        if self.poll_interval <= 0:
            raise ConfigError("poll_interval must be positive")
        if not self.extension.startswith("."):
            self.extension = f".{self.extension}"

    @property
    def ladder_table(self) -> Ladder:
        return get_ladder(self.ladder)

    @property
    def debounce(self) -> float:
        return self.debounce_ms / 1000

    @property
    def self_write_grace(self) -> float:
        return self.self_write_grace_ms / 1000

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SchedulerConfig":
        known = {f.name: f.default for f in fields(cls)}
        unknown = set(data) - set(known)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        values: dict[str, Any] = {}
        for key, raw in data.items():
            values[key] = _coerce(key, raw, known[key])
        return cls(**values)


def _coerce(key: str, raw: Any, default: Any) -> Any:
    try:
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Setting {key!r} has an invalid value: {raw!r}") from None
    return str(raw)


def settings_from_descriptor(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return the ``[plugin.settings]`` table of a parsed descriptor."""
    plugin = data.get("plugin", data)
    settings = plugin.get("settings", {})
    if not isinstance(settings, Mapping):
        raise ConfigError("[plugin.settings] must be a table")
    return dict(settings)


def load_config(
    path: Path | None = None,
    *,
    settings: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> SchedulerConfig:
    """Build a :class:`SchedulerConfig`.

    Later sources win: descriptor file at *path*, the *settings* table,
    environment variables, then keyword overrides (``None`` values ignored).
    """
    values: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "rb") as fh:
                values.update(settings_from_descriptor(tomllib.load(fh)))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if settings:
        values.update(settings)

    environ = os.environ if env is None else env
    for key, var in _ENV_VARS.items():
        if environ.get(var):
            values[key] = environ[var]

    values.update({k: v for k, v in overrides.items() if v is not None})
    return SchedulerConfig.from_mapping(values)
