"""Plugins shipped with folioview."""

from .autoplay import AutoplayPlugin
from .bookmarks import BookmarksPlugin
from .resume import ResumePlugin
from .search import SearchPlugin
from .url import UrlPlugin

BUILTIN_PLUGINS = (AutoplayPlugin, BookmarksPlugin, ResumePlugin, SearchPlugin, UrlPlugin)

__all__ = [
    "AutoplayPlugin",
    "BookmarksPlugin",
    "ResumePlugin",
    "SearchPlugin",
    "UrlPlugin",
    "BUILTIN_PLUGINS",
]
