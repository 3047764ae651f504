"""Plugin lifecycle wiring.

Plugins are objects (or modules) exposing ``on_plugin_load(event)``. The
manager hands every plugin a ``PluginEvent`` carrying the runtime and its
flag registry, which is where plugins contribute their command flags.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

from .errors import PluginLoadError

if TYPE_CHECKING:
    from .registry import FlagRegistry
    from .runtime import CLIRuntime

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "dynaflags.plugins"


@dataclass
class PluginEvent:
    """Passed to ``on_plugin_load``."""

    name: str
    runtime: "CLIRuntime"
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def registry(self) -> "FlagRegistry":
        return self.runtime.registry


class Plugin(ABC):
    """Base class for class based plugins."""

    name: str = ""

    @abstractmethod
    def on_plugin_load(self, event: PluginEvent) -> None:
        """Register flags and other resources with the runtime."""


class PluginManager:
    """Loads plugins in order and keeps them by name."""

    def __init__(self, runtime: "CLIRuntime", disabled: Iterable[str] = ()):
        self._runtime = runtime
        self._plugins: Dict[str, Any] = {}
        self._disabled = set(disabled)

    def add(self, name: str, instance: Any, options: Optional[Mapping[str, Any]] = None) -> bool:
        """Load ``instance`` under ``name``.

        Returns:
            False when the plugin is disabled, True once loaded

        Raises:
            PluginLoadError: If the name is taken or the instance has no hook
        """
        if not isinstance(name, str) or not name:
            raise PluginLoadError(repr(name), "plugin name is not a non-empty string")
        if name in self._disabled:
            logger.debug("Skipping disabled plugin '%s'", name)
            return False
        if name in self._plugins:
            raise PluginLoadError(name, "a plugin with this name is already loaded")

        hook = getattr(instance, "on_plugin_load", None)
        if not callable(hook):
            raise PluginLoadError(name, "no 'on_plugin_load' hook defined")

        event = PluginEvent(name=name, runtime=self._runtime, options=dict(options or {}))
        hook(event)
        self._plugins[name] = instance
        logger.debug("Loaded plugin '%s'", name)
        return True

    def add_module(self, module_path: str, options: Optional[Mapping[str, Any]] = None) -> bool:
        """Import a dotted module path and load it as a plugin."""
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            raise PluginLoadError(module_path, f"import failed: {e}") from e
        return self.add(module_path, module, options)

    def discover(self, group: str = ENTRY_POINT_GROUP) -> List[str]:
        """Load every plugin published under an entry point group."""
        loaded = []
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._disabled:
                logger.debug("Skipping disabled plugin '%s'", ep.name)
                continue
            try:
                target = ep.load()
            except Exception as e:
                raise PluginLoadError(ep.name, f"entry point failed to load: {e}") from e
            instance = target() if inspect.isclass(target) else target
            if self.add(ep.name, instance):
                loaded.append(ep.name)
        return loaded

    def get(self, name: str) -> Any:
        return self._plugins.get(name)

    def names(self) -> List[str]:
        return list(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins


def plugin_name(instance: Any) -> str:
    """Name declared by a plugin instance, falling back to its class name."""
    name = getattr(instance, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(instance).__name__


__all__ = ["ENTRY_POINT_GROUP", "Plugin", "PluginEvent", "PluginManager", "plugin_name"]
