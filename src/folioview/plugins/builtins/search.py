"""Full-text search over page text."""

from __future__ import annotations

from ..base import ReaderPlugin


class SearchPlugin(ReaderPlugin):
    """Finds pages whose text contains a term.

    Options:
        initial_search_term: Searched for when the viewer starts.
        go_to_first_result: Jump to the first hit of the initial search.
            Set at startup: only when no page was requested explicitly.
    """

    name = "search"
    default_options = {
        "enabled": True,
        "initial_search_term": None,
        "go_to_first_result": False,
    }

    def __init__(self, viewer):
        super().__init__(viewer)
        self.search_term: str | None = None
        self.results: list[int] = []

    def init(self) -> None:
        if not self.enabled:
            return
        term = self.options.get("initial_search_term")
        if term:
            self.search(term, go_to_first_result=self.options.get("go_to_first_result", False))

    def search(self, term: str, go_to_first_result: bool = False) -> list[int]:
        """Return the indices of pages containing ``term`` (case-insensitive)."""
        self.search_term = term
        needle = term.casefold()
        book = self.viewer.book
        self.results = [
            index
            for index in range(book.get_num_leafs())
            if needle in book.get_page_text(index).casefold()
        ]
        if go_to_first_result and self.results:
            self.viewer.jump_to_index(self.results[0])
        return self.results
