"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``storectl.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from storectl.plugins.event_bus import EventBus
from storectl.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
