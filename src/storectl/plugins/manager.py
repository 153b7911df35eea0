"""PluginManager: a pluggy manager with the storectl hook specs.

Built-ins are registered directly by the Registry; third-party plugins come
from the ``storectl.plugins`` entry-point group. An entry point may name a
plugin class instead of an instance; it is instantiated on load.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable

import pluggy

from storectl.plugins.hookspecs import StorectlHookSpec

PROJECT_NAME = "storectl"
ENTRY_POINT_GROUP = "storectl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Owns the pluggy manager that the event bus dispatches through."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(StorectlHookSpec)
        self._loaded = False

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def is_loaded(self) -> bool:
        """True once entry points have been scanned."""
        return self._loaded

    def discover_and_load(self, *, disabled: Iterable[str] = ()) -> list[str]:
        """Load entry-point plugins, skipping any named in *disabled*.

        Returns the names of every registered plugin, built-ins included.
        """
        for name in disabled:
            self._pm.set_blocked(name)
            logger.debug("Plugin disabled by config: %s", name)

        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for plugin in [p for p in self._pm.get_plugins() if inspect.isclass(p)]:
            self._instantiate(plugin)
        self._loaded = True
        logger.debug("Loaded %d entry-point plugin(s)", count)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        plugin_name = name or type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        logger.debug("Registered plugin: %s", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        names: list[str] = []
        for plugin in self._pm.get_plugins():
            names.append(self._pm.get_name(plugin) or type(plugin).__name__)
        return names

    def _instantiate(self, plugin_cls: type) -> None:
        """Swap a registered plugin class for an instance of it.

        Hooks called on the bare class would receive no ``self``. A class
        that cannot be constructed is dropped with a warning.
        """
        name = self._pm.get_name(plugin_cls) or plugin_cls.__name__
        self._pm.unregister(plugin_cls)
        try:
            instance = plugin_cls()
        except Exception:
            logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
            return
        self._pm.register(instance, name=name)
