"""Base class for folioview plugins."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..coordinator import ViewportCoordinator
    from ..renderers import PageContainer

# Plugin names key the plugin options mapping and the registry
_SAFE_NAME_RE = re.compile(r"^[a-z][a-zA-Z0-9_]*$")


class ReaderPlugin:
    """Base class for optional viewer features.

    Every concrete plugin must define the class attribute:
        name: Registry key and options key (e.g. "search", "resume").
              Must match [a-z][a-zA-Z0-9_]*.

    Class attribute ``default_options`` holds the plugin's option defaults;
    ``setup()`` merges the configured options over them. Every plugin has an
    ``enabled`` option.

    Lifecycle, driven by the viewer:
        __init__(viewer): at viewer construction.
        setup(options): once, with the configured options.
        extend_nav_bar(navbar): once, while the navbar is built.
        init(): once, after the viewer has rendered.
        bind_navigation_handlers(): once, after the initial render.
        configure_page_container(container): per page container created.

    Set ``abstract = True`` on intermediate base classes to skip validation.
    """

    name: str
    default_options: dict[str, Any] = {"enabled": True}
    abstract = False

    def __init_subclass__(cls, **kwargs: object) -> None:
        """Validate required class attributes at definition time."""
        super().__init_subclass__(**kwargs)

        if cls.__dict__.get("abstract", False):
            return

        if not hasattr(cls, "name"):
            raise TypeError(f"ReaderPlugin subclass {cls.__name__} must define 'name'")
        if not isinstance(cls.name, str) or not _SAFE_NAME_RE.match(cls.name):
            raise TypeError(
                f"ReaderPlugin subclass {cls.__name__} has invalid name "
                f"{cls.name!r}: must match [a-z][a-zA-Z0-9_]*"
            )
        if "enabled" not in cls.default_options:
            cls.default_options = {"enabled": True, **cls.default_options}

    def __init__(self, viewer: "ViewportCoordinator"):
        self.viewer = viewer
        self.options: dict[str, Any] = dict(self.default_options)

    @property
    def enabled(self) -> bool:
        return bool(self.options.get("enabled", True))

    def setup(self, options: dict[str, Any]) -> None:
        self.options = {**self.options, **options}

    def init(self) -> None:
        pass

    def extend_nav_bar(self, navbar: Any) -> None:
        pass

    def bind_navigation_handlers(self) -> None:
        pass

    def configure_page_container(self, container: "PageContainer") -> None:
        pass
