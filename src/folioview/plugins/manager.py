"""Per-viewer plugin lifecycle.

Builds one instance of every registered plugin for a viewer and drives the
lifecycle hooks. ``setup()`` and ``init()`` failures are isolated: the error
is logged with the plugin's name, the plugin keeps whatever state it reached,
and the remaining plugins carry on.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from .base import ReaderPlugin
from .registry import PLUGINS, STANDARD_PLUGINS, PluginRegistry

if TYPE_CHECKING:
    from ..coordinator import ViewportCoordinator
    from ..renderers import PageContainer

logger = logging.getLogger(__name__)


class PluginLifecycleManager:
    """Plugin instances of one viewer, keyed by plugin name."""

    def __init__(
        self,
        viewer: "ViewportCoordinator",
        registry: PluginRegistry | None = None,
    ):
        self.viewer = viewer
        self.registry = registry if registry is not None else PLUGINS
        self._plugins: dict[str, ReaderPlugin] = {}
        self._construct()

    def _construct(self) -> None:
        # Standard slots first, then anything else that was registered
        for name in STANDARD_PLUGINS:
            plugin_cls = self.registry.get(name)
            if plugin_cls is not None:
                self._plugins[name] = plugin_cls(self.viewer)

        for name, plugin_cls in self.registry.items():
            if name in self._plugins:
                continue
            self._plugins[name] = plugin_cls(self.viewer)

    def get(self, name: str) -> ReaderPlugin | None:
        return self._plugins.get(name)

    def enabled(self, name: str) -> ReaderPlugin | None:
        """Return the plugin ``name`` if it exists and is enabled."""
        plugin = self._plugins.get(name)
        if plugin is not None and plugin.enabled:
            return plugin
        return None

    def __contains__(self, name: str) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[ReaderPlugin]:
        return iter(list(self._plugins.values()))

    def __len__(self) -> int:
        return len(self._plugins)

    def names(self) -> list[str]:
        return list(self._plugins)

    def items(self) -> list[tuple[str, ReaderPlugin]]:
        return list(self._plugins.items())

    def setup(self, plugin_options: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
        """Call ``setup()`` on every plugin with its configured options.

        Returns:
            The options each plugin ended up with, keyed by name. The plugin
            owns these; callers should read options from here afterwards.
        """
        resolved: dict[str, dict[str, Any]] = {
            name: dict(opts) for name, opts in plugin_options.items()
        }
        for name, plugin in self._plugins.items():
            try:
                plugin.setup(dict(plugin_options.get(name, {})))
                resolved[name] = plugin.options
            except Exception:
                logger.exception("Error setting up plugin %s", name)
        return resolved

    def init(self) -> None:
        """Call ``init()`` on every plugin."""
        for name, plugin in self._plugins.items():
            try:
                plugin.init()
            except Exception:
                logger.exception("Error initializing plugin %s", name)

    def extend_nav_bar(self, navbar: Any) -> None:
        for plugin in self:
            plugin.extend_nav_bar(navbar)

    def bind_navigation_handlers(self) -> None:
        for plugin in self:
            plugin.bind_navigation_handlers()

    def configure_page_container(self, container: "PageContainer") -> None:
        for plugin in self:
            plugin.configure_page_container(container)
