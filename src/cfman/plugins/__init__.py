"""Plugin/task dispatch core: event bus, contracts, registry, discovery.

INVARIANT: Plugin failures never escape PluginRegistry.execute_task.
"""

from cfman.plugins.event_bus import EventBus
from cfman.plugins.events import EventKind
from cfman.plugins.manager import PluginManager
from cfman.plugins.registry import PluginRegistry

__all__ = ["EventBus", "EventKind", "PluginManager", "PluginRegistry"]
