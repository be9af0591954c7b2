"""Process-wide plugin registry and plugin discovery.

Plugin classes are registered by name before any viewer is created; each
viewer then builds its own plugin instances from the registry. Discovery
scans directories for .py files defining ReaderPlugin subclasses. Built-in
plugins ship in ``plugins/builtins/``.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
from pathlib import Path
from typing import Iterator

from .base import ReaderPlugin

logger = logging.getLogger(__name__)

# Plugins the viewer knows about; constructed first, in this order
STANDARD_PLUGINS = (
    "archive_analytics",
    "autoplay",
    "chapters",
    "search",
    "resume",
    "text_selection",
    "tts",
)


class PluginRegistry:
    """Mapping of plugin name to plugin class."""

    def __init__(self):
        self._plugins: dict[str, type[ReaderPlugin] | None] = {
            name: None for name in STANDARD_PLUGINS
        }

    def register(self, name: str, plugin_cls: type[ReaderPlugin]) -> None:
        """Register ``plugin_cls`` under ``name``, replacing any previous class."""
        existing = self._plugins.get(name)
        if existing is not None and existing is not plugin_cls:
            logger.warning("Plugin %s already registered. Overwriting.", name)
        self._plugins[name] = plugin_cls

    def unregister(self, name: str) -> None:
        if name in STANDARD_PLUGINS:
            self._plugins[name] = None
        else:
            self._plugins.pop(name, None)

    def get(self, name: str) -> type[ReaderPlugin] | None:
        return self._plugins.get(name)

    def items(self) -> Iterator[tuple[str, type[ReaderPlugin]]]:
        """Registered (name, class) pairs, skipping empty standard slots."""
        for name, plugin_cls in list(self._plugins.items()):
            if plugin_cls is not None:
                yield name, plugin_cls

    def __contains__(self, name: str) -> bool:
        return self._plugins.get(name) is not None

    def discover(self, directory: Path) -> list[type[ReaderPlugin]]:
        """Register every plugin class found in ``directory``."""
        found = scan_directory(Path(directory))
        for plugin_cls in found:
            self.register(plugin_cls.name, plugin_cls)
        return found

    def register_builtins(self) -> list[type[ReaderPlugin]]:
        """Register the plugins shipped in ``plugins/builtins/``."""
        from .builtins import BUILTIN_PLUGINS

        for plugin_cls in BUILTIN_PLUGINS:
            self.register(plugin_cls.name, plugin_cls)
        return list(BUILTIN_PLUGINS)


# The default process-wide registry
PLUGINS = PluginRegistry()


def register_plugin(name: str, plugin_cls: type[ReaderPlugin]) -> None:
    """Register a plugin class in the process-wide registry."""
    PLUGINS.register(name, plugin_cls)


def discover_plugins(
    directory: Path | None = None, registry: PluginRegistry | None = None
) -> list[type[ReaderPlugin]]:
    """Register the built-in plugins, then those found in ``directory``.

    Plugins found in ``directory`` override built-ins of the same name.

    Returns:
        Every plugin class registered by this call.
    """
    registry = registry if registry is not None else PLUGINS
    found = registry.register_builtins()
    if directory is not None:
        found.extend(registry.discover(Path(directory)))
    return found


def scan_directory(directory: Path) -> list[type[ReaderPlugin]]:
    """Scan a directory for .py files containing ReaderPlugin subclasses.

    Each .py file is imported as a module and inspected for concrete
    ReaderPlugin subclasses defined in it. Files starting with ``_`` are
    skipped, as are files that fail to import.

    Args:
        directory: Path to directory to scan.

    Returns:
        Plugin classes found, in file order.
    """
    plugins: list[type[ReaderPlugin]] = []
    if not directory.is_dir():
        logger.warning("Plugin directory does not exist: %s", directory)
        return plugins

    for py_file in sorted(directory.glob("*.py")):
        if py_file.name.startswith("_"):
            continue

        try:
            module = _import_file(py_file)
        except Exception:
            logger.warning("Failed to import plugin file: %s", py_file, exc_info=True)
            continue

        for _name, obj in inspect.getmembers(module, inspect.isclass):
            if (
                issubclass(obj, ReaderPlugin)
                and obj is not ReaderPlugin
                and not obj.__dict__.get("abstract", False)
                and obj.__module__ == module.__name__
            ):
                plugins.append(obj)

    return plugins


def _import_file(path: Path):
    """Import a Python file as a module.

    Uses importlib.util to load a .py file without requiring it to be
    on sys.path or part of a package.
    """
    module_name = f"folioview_plugin_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot create module spec for {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
