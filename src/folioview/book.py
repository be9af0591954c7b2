"""Book and page metadata.

:class:`Book` is the contract the viewer navigates against. :class:`BookModel`
is an in-memory implementation built from a list of page-metadata dicts, as
found in a book manifest::

    id: my-book
    title_leaf: 3
    pages:
      - {page_num: "i"}
      - {page_num: "1", viewable: false}
      - {page_num: "2", text: "Chapter one"}
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml

from .errors import FolioviewError

_LEAF_RE = re.compile(r"^leaf(\d+)")
_INDEX_RE = re.compile(r"^n(\d+)")


@dataclass
class Page:
    """A single page (leaf) of a book, identified by its zero-based index."""

    book: "Book" = field(repr=False, compare=False)
    index: int
    is_viewable: bool = True
    # First index of the unviewable run this page belongs to (None if viewable)
    unviewables_start: int | None = None
    page_num: str | None = None

    def find_next(self, combine_consecutive_unviewables: bool = False) -> "Page | None":
        """Return the page after this one, or None at the end of the book.

        With ``combine_consecutive_unviewables``, every unviewable run counts
        as a single page: only its first page can be returned.
        """
        for page in self.book.pages_iter(
            start=self.index + 1,
            combine_consecutive_unviewables=combine_consecutive_unviewables,
        ):
            return page
        return None

    def find_prev(self, combine_consecutive_unviewables: bool = False) -> "Page | None":
        """Return the page before this one, or None at the start of the book."""
        for index in range(self.index - 1, -1, -1):
            page = self.book.get_page(index, loop=False)
            if (
                combine_consecutive_unviewables
                and not page.is_viewable
                and page.unviewables_start != page.index
            ):
                continue
            return page
        return None


class Book(ABC):
    """Page metadata the viewer needs. Implementations supply the data."""

    @abstractmethod
    def get_num_leafs(self) -> int:
        ...

    @abstractmethod
    def get_page(self, index: int, loop: bool = True) -> Page | None:
        """Return the page at ``index``.

        With ``loop`` (the default) negative and overflowing indices wrap
        around; without it, out-of-range indices return None.
        """
        ...

    @abstractmethod
    def get_page_num(self, index: int) -> str:
        """Return the book-native page number, or ``n<index>`` if it has none."""
        ...

    @abstractmethod
    def leaf_num_to_index(self, leaf_num: int) -> int:
        ...

    @abstractmethod
    def get_page_index(self, page_num: str) -> int | None:
        """Return the first index carrying ``page_num``, or None."""
        ...

    def parse_page_string(self, page_string: str) -> int | None:
        """Resolve a page string to an index.

        Accepts ``leaf<N>`` (leaf number), ``n<N>`` (raw index) or a
        book-native page number. Returns None if nothing matches.
        """
        page_string = str(page_string)
        leaf_match = _LEAF_RE.match(page_string)
        if leaf_match:
            return self.leaf_num_to_index(int(leaf_match.group(1)))

        index_match = _INDEX_RE.match(page_string)
        if index_match:
            return int(index_match.group(1))

        return self.get_page_index(page_string)

    def get_page_text(self, index: int) -> str:
        """Return searchable text for a page (empty if unknown)."""
        return ""

    def pages_iter(
        self, start: int = 0, combine_consecutive_unviewables: bool = False
    ) -> Iterator[Page]:
        for index in range(start, self.get_num_leafs()):
            page = self.get_page(index, loop=False)
            if (
                combine_consecutive_unviewables
                and not page.is_viewable
                and page.unviewables_start != page.index
            ):
                continue
            yield page


class BookModel(Book):
    """Book backed by a list of page-metadata dicts.

    Recognized page keys: ``page_num``, ``leaf_num``, ``viewable`` (default
    True) and ``text``.
    """

    def __init__(
        self,
        pages: list[dict[str, Any]],
        identifier: str | None = None,
        title_leaf: int | None = None,
    ):
        self.identifier = identifier
        self.title_leaf = title_leaf
        self._data = [dict(p) for p in pages]
        self._unviewables_start = self._compute_unviewable_runs()

    @classmethod
    def with_num_leafs(cls, num_leafs: int, **kwargs) -> "BookModel":
        """Build a book of ``num_leafs`` viewable pages without page numbers."""
        return cls([{} for _ in range(num_leafs)], **kwargs)

    @classmethod
    def from_manifest(cls, data: dict[str, Any]) -> "BookModel":
        """Build a book from a parsed manifest mapping.

        Raises:
            FolioviewError: If the manifest has neither ``pages`` nor
                ``num_leafs``.
        """
        if not isinstance(data, dict):
            raise FolioviewError("Book manifest must be a mapping")

        identifier = data.get("id")
        title_leaf = data.get("title_leaf")
        if "pages" in data and isinstance(data["pages"], list):
            pages = []
            for entry in data["pages"]:
                if isinstance(entry, dict):
                    pages.append(entry)
                else:
                    pages.append({"page_num": str(entry)})
            return cls(pages, identifier=identifier, title_leaf=title_leaf)
        if "num_leafs" in data:
            return cls.with_num_leafs(
                int(data["num_leafs"]), identifier=identifier, title_leaf=title_leaf
            )
        raise FolioviewError("Book manifest needs 'pages' or 'num_leafs'")

    @classmethod
    def load(cls, path: Path) -> "BookModel":
        """Load a book manifest from a YAML (or JSON) file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise FolioviewError(f"Invalid manifest {path}: {e}") from e
        except OSError as e:
            raise FolioviewError(f"Cannot read manifest {path}: {e}") from e
        return cls.from_manifest(data)

    def _compute_unviewable_runs(self) -> list[int | None]:
        starts: list[int | None] = []
        run_start = None
        for index, data in enumerate(self._data):
            if data.get("viewable", True):
                run_start = None
                starts.append(None)
            else:
                if run_start is None:
                    run_start = index
                starts.append(run_start)
        return starts

    def get_num_leafs(self) -> int:
        return len(self._data)

    def get_page(self, index: int, loop: bool = True) -> Page | None:
        num_leafs = self.get_num_leafs()
        if not loop and (index < 0 or index >= num_leafs):
            return None
        if num_leafs == 0:
            return None
        index = index % num_leafs

        data = self._data[index]
        page_num = data.get("page_num")
        return Page(
            book=self,
            index=index,
            is_viewable=bool(data.get("viewable", True)),
            unviewables_start=self._unviewables_start[index],
            page_num=None if page_num is None else str(page_num),
        )

    def get_page_num(self, index: int) -> str:
        page_num = self._data[index].get("page_num")
        return f"n{index}" if page_num is None else str(page_num)

    def get_page_index(self, page_num: str) -> int | None:
        for index, data in enumerate(self._data):
            if data.get("page_num") is not None and str(data["page_num"]) == page_num:
                return index
        return None

    def leaf_num_to_index(self, leaf_num: int) -> int:
        for index, data in enumerate(self._data):
            if data.get("leaf_num") == leaf_num:
                return index
        # Leafs are zero-indexed when no explicit leaf numbers are given
        return leaf_num

    def get_page_text(self, index: int) -> str:
        return str(self._data[index].get("text", ""))
