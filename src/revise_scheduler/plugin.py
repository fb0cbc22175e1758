"""Plugin descriptor loader and hook dispatch.

Each plugin is described by a TOML file::

    [plugin]
    id      = "revise-scheduler"
    name    = "Revise Scheduler"
    version = "0.1.0"
    entry   = "revise_scheduler.revise"   # module exposing create_plugin()
    hooks   = ["on_load", "on_document_changed", "on_unload"]

    [plugin.settings]
    ladder = "spaced"

Hosts load descriptors with :func:`load_plugin` / :func:`load_all_plugins`
and forward their events with :func:`fire_hook` (or :func:`afire_hook` for
hooks that may be coroutines).
"""

from __future__ import annotations

import importlib
import inspect
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_STANDARD_KEYS = {"id", "name", "version", "entry", "hooks", "settings"}


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------


@dataclass
class PluginDescriptor:
    id: str
    name: str
    version: str
    entry: str  # dotted Python module path
    hooks: list[str] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginDescriptor":
        plugin = data.get("plugin", data)
        return cls(
            id=plugin["id"],
            name=plugin["name"],
            version=plugin.get("version", "0.1.0"),
            entry=plugin["entry"],
            hooks=plugin.get("hooks", []),
            settings=plugin.get("settings", {}),
            meta={k: v for k, v in plugin.items() if k not in _STANDARD_KEYS},
        )


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class HostPlugin(Protocol):
    descriptor: PluginDescriptor

    def on_load(self, store: Any, notifier: Any = None) -> None: ...
    def on_document_changed(self, doc_id: str) -> None: ...
    def on_checkbox_metadata_changed(self, doc_id: str, items: list[Any]) -> None: ...


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_plugin(descriptor_path: Path) -> HostPlugin:
    """Load a single plugin from a ``.toml`` descriptor file."""
    with open(descriptor_path, "rb") as fh:
        data = tomllib.load(fh)

    desc = PluginDescriptor.from_dict(data)
    module = importlib.import_module(desc.entry)

    if not hasattr(module, "create_plugin"):
        raise AttributeError(f"Plugin module '{desc.entry}' must expose a 'create_plugin(descriptor)' factory.")

    plugin: HostPlugin = module.create_plugin(desc)
    return plugin


def load_all_plugins(plugins_dir: Path) -> list[HostPlugin]:
    """Load every ``*.toml`` plugin descriptor found in *plugins_dir*."""
    plugins_dir = Path(plugins_dir)
    plugins: list[HostPlugin] = []
    for toml_path in sorted(plugins_dir.glob("*.toml")):
        try:
            plugins.append(load_plugin(toml_path))
        except Exception:  # noqa: BLE001
            # Log but don't hard-crash so remaining plugins still load
            logger.warning("Failed to load plugin %s", toml_path.name, exc_info=True)
    return plugins


def fire_hook(plugins: list[HostPlugin], hook: str, **kwargs: Any) -> list[Any]:
    """Call *hook* on every plugin that declares it; return the call results."""
    results: list[Any] = []
    for plugin in plugins:
        if hook in plugin.descriptor.hooks and hasattr(plugin, hook):
            results.append(getattr(plugin, hook)(**kwargs))
    return results


async def afire_hook(plugins: list[HostPlugin], hook: str, **kwargs: Any) -> list[Any]:
    """Like :func:`fire_hook`, awaiting hooks implemented as coroutines."""
    results: list[Any] = []
    for result in fire_hook(plugins, hook, **kwargs):
        results.append(await result if inspect.isawaitable(result) else result)
    return results
