"""Discovery of third-party resource plugins via pluggy entry points.

INVARIANT: A broken third-party plugin is a warning, never an error.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from cfman.plugins.contracts import ResourcePlugin
from cfman.plugins.hookspecs import PROJECT_NAME, CfmanHookSpec

ENTRY_POINT_GROUP = "cfman.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Loads hook implementations and collects the resource plugins they provide."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(CfmanHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load hook implementations from the ``cfman.plugins`` entry-point group.

        Returns the names of all registered hook implementations.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load %s entry points", ENTRY_POINT_GROUP, exc_info=True)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a hook implementation directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered hook implementation: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def collect_resource_plugins(self) -> list[ResourcePlugin]:
        """Call every ``cfman_resource_plugins`` implementation and flatten the results.

        Implementations that raise, or return anything other than
        :class:`ResourcePlugin` instances, are logged and skipped.
        """
        collected: list[ResourcePlugin] = []
        for impl in self._pm.hook.cfman_resource_plugins.get_hookimpls():
            try:
                provided = impl.function()
            except Exception:
                logger.warning(
                    "Resource plugin hook %s failed", impl.plugin_name, exc_info=True
                )
                continue
            for plugin in provided or []:
                if not isinstance(plugin, ResourcePlugin):
                    logger.warning(
                        "Hook %s returned a non-ResourcePlugin object: %r",
                        impl.plugin_name,
                        plugin,
                    )
                    continue
                collected.append(plugin)
        return collected

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a class directly, which leaves
        ``self`` unbound when the hook is called.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s", plugin_name, exc_info=True
                )
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
