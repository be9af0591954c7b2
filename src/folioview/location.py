"""The viewer's URL.

:class:`Location` stands in for the browser location: the path, query string
and hash the viewer reads its initial state from and writes state back to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from .fragment import read_query_string


@dataclass
class Location:
    """Path, query string (``?a=b``) and hash (``#page/5``) of a URL."""

    pathname: str = "/"
    search: str = ""
    hash: str = ""
    # Every URL written with replace(), oldest first
    history: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_url(cls, url: str) -> "Location":
        parts = urlsplit(url)
        return cls(
            pathname=parts.path or "/",
            search=f"?{parts.query}" if parts.query else "",
            hash=f"#{parts.fragment}" if parts.fragment else "",
        )

    @property
    def href(self) -> str:
        return f"{self.pathname}{self.search}{self.hash}"

    def read_fragment(self, url_mode: str = "hash", base_path: str = "/") -> str:
        """Return the state fragment: the path after ``base_path`` in history
        mode, the hash without ``#`` otherwise."""
        if url_mode == "history":
            return self.pathname[len(base_path):]
        return self.hash[1:]

    def read_hash_fragment(self) -> str:
        return self.hash[1:]

    def read_query_string(self) -> str:
        """Return the query string, or one embedded in the hash."""
        return read_query_string(self.search, self.hash)

    def replace(
        self,
        pathname: str | None = None,
        search: str | None = None,
        hash: str | None = None,
    ) -> None:
        """Change parts of the URL without adding a navigation step."""
        if pathname is not None:
            self.pathname = pathname
        if search is not None:
            self.search = search
        if hash is not None:
            self.hash = hash
        self.history.append(self.href)
