"""Plugin system for folioview.

Provides the API for defining, registering and discovering the optional
feature plugins a viewer builds at construction time.

Discovery scans directories for .py files that define ReaderPlugin
subclasses. Built-in plugins ship in ``builtins/``. Users can add custom
plugins via the ``plugins_dir`` option.
"""

from .base import ReaderPlugin
from .manager import PluginLifecycleManager
from .registry import (
    PLUGINS,
    STANDARD_PLUGINS,
    PluginRegistry,
    discover_plugins,
    register_plugin,
    scan_directory,
)

# Built-in plugins are always available in the default registry
PLUGINS.register_builtins()

__all__ = [
    "ReaderPlugin",
    "PluginLifecycleManager",
    "PluginRegistry",
    "PLUGINS",
    "STANDARD_PLUGINS",
    "register_plugin",
    "discover_plugins",
    "scan_directory",
]
