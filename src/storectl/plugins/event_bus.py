"""Synchronous event dispatch via pluggy.

The engine runs no background work, so hooks execute on the calling
thread, after the operation's locks are released.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from storectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatch named hooks to every registered plugin.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
    """

    def __init__(self, plugin_manager: PluginManager) -> None:
        self._pm = plugin_manager
        self._dispatched = 0

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    @property
    def dispatched(self) -> int:
        """Number of events dispatched so far."""
        return self._dispatched

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call hook *hook_name* with *payload* as keyword arguments.

        Raises whatever the hook implementation raises; callers turn that
        into a warning.
        """
        hook = getattr(self._pm.hook, hook_name, None)
        if hook is None:
            raise ValueError(f"Unknown hook: {hook_name}")
        self._dispatched += 1
        hook(**payload)
