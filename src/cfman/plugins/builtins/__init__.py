"""Built-in resource plugins."""

from cfman.plugins.builtins.kv import KVPlugin
from cfman.plugins.builtins.workers import WorkersPlugin

__all__ = ["KVPlugin", "WorkersPlugin"]
