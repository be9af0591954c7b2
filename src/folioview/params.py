"""Resolution of the initial view from every source that can request one."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl

from .fragment import Params, extend_params, params_from_fragment

if TYPE_CHECKING:
    from .coordinator import ViewportCoordinator

logger = logging.getLogger(__name__)


class ParamsResolver:
    """Merges the startup parameter sources into one :class:`Params`.

    Sources, from lowest to highest priority:

    1. the book's title leaf (books with more than two pages), else index 0
    2. the ``defaults`` option, in fragment form
    3. the resume plugin's stored position
    4. the URL (when ``enable_url_plugin`` is set)
    5. the search plugin, which only picks up the search term
    """

    def __init__(self, viewer: "ViewportCoordinator"):
        self.viewer = viewer

    def resolve(self) -> Params:
        viewer = self.viewer
        book = viewer.book
        options = viewer.options
        location = viewer.location

        # page_found: a page came from defaults or URL (not from resume)
        params = Params(init=True, page_found=False, fragment_change=False)

        title_leaf = options.title_leaf
        if title_leaf is None:
            title_leaf = getattr(book, "title_leaf", None)
        if title_leaf is not None and book.get_num_leafs() > 2:
            params.index = book.leaf_num_to_index(title_leaf)
        else:
            params.index = 0

        if options.defaults:
            default_params = params_from_fragment(options.defaults)
            if default_params.page is not None:
                params.page_found = True
            params = extend_params(params, default_params, book)

        resume = viewer.plugins.enabled("resume")
        if resume is not None:
            value = resume.get_resume_value()
            if value is not None:
                if params.index != value:
                    params.fragment_change = True
                params.index = value

        if options.enable_url_plugin:
            url_params = params_from_fragment(
                location.read_fragment(options.url_mode, options.url_history_base_path)
            )
            hash_fragment = location.read_hash_fragment()
            if not url_params and hash_fragment and options.url_mode == "history":
                url_params = params_from_fragment(hash_fragment)

            if url_params:
                if url_params.page is not None:
                    params.page_found = True
                params = extend_params(params, url_params, book)
                params.fragment_change = True

        search = viewer.plugins.enabled("search")
        if search is not None:
            # Go to the first result only if no page was asked for
            search.options["go_to_first_result"] = not params.page_found

            if not search.options.get("initial_search_term"):
                if params.search:
                    # Legacy: /search/<term> in the fragment
                    search.options["initial_search_term"] = params.search
                    search.search_term = params.search
                else:
                    query = dict(parse_qsl(location.read_query_string().lstrip("?")))
                    if query.get("q"):
                        search.options["initial_search_term"] = query["q"]

        # Reaching the initial state should not rewrite the URL unless
        # one of the sources asked for it; init() lifts this again
        viewer.state.suppress_fragment_change = not params.fragment_change
        logger.debug("Resolved initial params: %s", params)
        return params
