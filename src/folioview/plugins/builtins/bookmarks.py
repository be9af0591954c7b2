"""Per-page bookmarks with a note and a color."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

from ...errors import FolioviewError
from ...events import Events
from ..base import ReaderPlugin

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path.home() / ".folioview" / "bookmarks.yaml"

# Color ids and their display names
BOOKMARK_COLORS = {0: "red", 1: "blue", 2: "green"}


@dataclass
class Bookmark:
    """A bookmark on the page at index ``id``."""

    id: int
    page: str
    note: str = ""
    color: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Bookmark":
        return cls(
            id=int(data["id"]),
            page=str(data.get("page", "")),
            note=str(data.get("note") or ""),
            color=int(data.get("color", 0)),
        )

    @property
    def color_name(self) -> str:
        return BOOKMARK_COLORS.get(self.color, BOOKMARK_COLORS[0])


class BookmarksPlugin(ReaderPlugin):
    """Keeps bookmarks per book in a YAML state file.

    Options:
        state_file: Where bookmarks are stored.
        key: Entry name in the state file (defaults to the book identifier).
        default_color: Color id given to new bookmarks.

    Changes publish ``bookmarksChanged``; selecting a bookmark jumps to its
    page and publishes ``bookmarkSelected`` with the bookmark.
    """

    name = "bookmarks"
    default_options = {"enabled": True, "state_file": None, "key": None, "default_color": 0}

    def __init__(self, viewer):
        super().__init__(viewer)
        self.bookmarks: dict[int, Bookmark] = {}
        self.active_bookmark_id: int | None = None

    def init(self) -> None:
        if not self.enabled:
            return
        self.bookmarks = self._load()

    @property
    def state_file(self) -> Path:
        state_file = self.options.get("state_file")
        return Path(state_file).expanduser() if state_file else DEFAULT_STATE_FILE

    @property
    def key(self) -> str:
        key = self.options.get("key") or getattr(self.viewer.book, "identifier", None)
        return str(key or "default")

    def sorted_bookmarks(self) -> list[Bookmark]:
        """Bookmarks in page order."""
        return [self.bookmarks[index] for index in sorted(self.bookmarks)]

    def is_bookmarked(self, index: int) -> bool:
        return index in self.bookmarks

    def add(self, index: int | None = None, note: str = "") -> Bookmark:
        """Bookmark ``index`` (the current page by default).

        An existing bookmark on that page is returned unchanged.
        """
        if index is None:
            index = self.viewer.current_index()
        if self.viewer.book.get_page(index, loop=False) is None:
            raise FolioviewError(f"Cannot bookmark missing page {index}")

        existing = self.bookmarks.get(index)
        if existing is not None:
            return existing

        bookmark = Bookmark(
            id=index,
            page=self.viewer.book.get_page_num(index),
            note=note,
            color=self._check_color(self.options.get("default_color", 0)),
        )
        self.bookmarks[index] = bookmark
        self._changed()
        return bookmark

    def save(self, index: int, note: str | None = None, color: int | None = None) -> Bookmark:
        """Update the note and/or color of the bookmark on ``index``."""
        bookmark = self._get(index)
        if note is not None:
            bookmark.note = note
        if color is not None:
            bookmark.color = self._check_color(color)
        self._changed()
        return bookmark

    def change_color(self, index: int, color: int) -> Bookmark:
        return self.save(index, color=color)

    def delete(self, index: int) -> None:
        self._get(index)
        del self.bookmarks[index]
        if self.active_bookmark_id == index:
            self.active_bookmark_id = None
        self._changed()

    def toggle(self, index: int | None = None) -> bool:
        """Add or remove the bookmark on ``index``; True if now bookmarked."""
        if index is None:
            index = self.viewer.current_index()
        if index in self.bookmarks:
            self.delete(index)
            return False
        self.add(index)
        return True

    def select(self, index: int) -> Bookmark:
        """Jump to the bookmarked page."""
        bookmark = self._get(index)
        self.active_bookmark_id = bookmark.id
        self.viewer.jump_to_index(bookmark.id)
        self.viewer.trigger(Events.BOOKMARK_SELECTED, bookmark)
        return bookmark

    def configure_page_container(self, container) -> None:
        if not self.enabled:
            return
        bookmark = self.bookmarks.get(container.page.index)
        if bookmark is not None:
            container.classes.add("BRbookmarked")
            container.attributes["data-bookmark-color"] = bookmark.color_name

    def _get(self, index: int) -> Bookmark:
        bookmark = self.bookmarks.get(index)
        if bookmark is None:
            raise FolioviewError(f"No bookmark on page {index}")
        return bookmark

    def _check_color(self, color: Any) -> int:
        if isinstance(color, bool) or color not in BOOKMARK_COLORS:
            raise FolioviewError(
                f"Unknown bookmark color {color!r}; expected one of {sorted(BOOKMARK_COLORS)}"
            )
        return color

    def _changed(self) -> None:
        self._save()
        self.viewer.trigger(Events.BOOKMARKS_CHANGED, self.sorted_bookmarks())

    def _read_state(self) -> dict[str, Any]:
        path = self.state_file
        if not path.is_file():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            logger.warning("Ignoring unreadable bookmarks: %s", path)
            return {}
        return data if isinstance(data, dict) else {}

    def _load(self) -> dict[int, Bookmark]:
        entries = self._read_state().get(self.key) or []
        bookmarks = {}
        for entry in entries:
            try:
                bookmark = Bookmark.from_dict(entry)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed bookmark in %s: %r", self.state_file, entry)
                continue
            bookmarks[bookmark.id] = bookmark
        return bookmarks

    def _save(self) -> None:
        state = self._read_state()
        state[self.key] = [asdict(bookmark) for bookmark in self.sorted_bookmarks()]
        path = self.state_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(yaml.safe_dump(state, default_flow_style=False, sort_keys=False))
        except OSError as e:
            raise FolioviewError(f"Cannot write bookmarks {path}: {e}") from e
