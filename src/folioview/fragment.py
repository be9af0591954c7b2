"""Fragment serialization of viewer state.

A fragment is a slash-delimited ``key/value`` path, e.g.
``page/n5/mode/2up/search/cats+and+dogs``. The legacy form is a bare leaf
index (``#42``). Fragments are used in URLs but also as a plain
serialization format (e.g. the ``defaults`` option).

Query-string keys ``view`` (``theater`` marks fullscreen) and ``q`` (search
term, only in ``history`` URL mode) are handled separately.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, unquote, urlencode

from .errors import UnknownModeError
from .modes import MODE_TOKENS, TOKEN_FOR_MODE, Mode
from .utils import (
    decode_uri_component_plus,
    encode_uri_component,
    encode_uri_component_plus,
)

if TYPE_CHECKING:
    from .book import Book

URL_MODES = ("hash", "history")

FULLSCREEN_VIEW = "theater"

_LEGACY_INDEX_RE = re.compile(r"[0-9]+")
_HASH_QUERY_RE = re.compile(r"\?\w+=")


@dataclass
class Params:
    """A navigation target, as decoded from a fragment or built from state.

    ``page`` is a book-native page string; ``index`` a zero-based leaf index.
    :func:`normalize_params` turns ``page`` into ``index`` so that consumers
    only deal with one of them.
    """

    index: int | None = None
    page: str | None = None
    mode: Mode | None = None
    search: str | None = None
    theme: str | None = None
    view: str | None = None

    # Control flags used while resolving the initial state
    init: bool = False
    fragment_change: bool = False
    page_found: bool = False

    def keys(self) -> list[str]:
        """Names of the state fields that are set."""
        return [name for name in STATE_FIELDS if getattr(self, name) is not None]

    def __bool__(self) -> bool:
        return bool(self.keys())


STATE_FIELDS = tuple(
    f.name for f in fields(Params) if f.name not in ("init", "fragment_change", "page_found")
)


def params_from_fragment(fragment: str) -> Params:
    """Decode a fragment string into :class:`Params`.

    A leading ``#`` is accepted. A bare integer is a legacy leaf index and
    nothing else is parsed. Unrecognized keys and mode values are ignored.
    """
    if fragment.startswith("#"):
        fragment = fragment[1:]

    if _LEGACY_INDEX_RE.fullmatch(fragment):
        return Params(index=int(fragment))

    tokens = fragment.split("/")
    url_hash: dict[str, str | None] = {}
    for i in range(0, len(tokens), 2):
        url_hash[tokens[i]] = tokens[i + 1] if i + 1 < len(tokens) else None

    params = Params()

    mode_token = url_hash.get("mode")
    if mode_token in MODE_TOKENS:
        params.mode = MODE_TOKENS[mode_token]

    # page may not be an integer
    if url_hash.get("page") is not None:
        params.page = unquote(url_hash["page"])

    if url_hash.get("search") is not None:
        params.search = decode_uri_component_plus(url_hash["search"])

    if url_hash.get("theme") is not None:
        params.theme = url_hash["theme"]

    return params


def fragment_from_params(params: Params, url_mode: str = "hash") -> str:
    """Encode :class:`Params` as a fragment string.

    Without a page number the index is written as ``page/n<index>``. The
    search term is only part of the fragment in ``hash`` URL mode.

    Raises:
        UnknownModeError: If ``params.mode`` is not a known mode.
    """
    fragments: list[str] = []

    if params.page is not None:
        fragments += ["page", encode_uri_component(params.page)]
    elif params.index is not None:
        fragments += ["page", f"n{params.index}"]

    if params.mode is not None:
        token = TOKEN_FOR_MODE.get(params.mode) if not isinstance(params.mode, str) else None
        if token is None:
            raise UnknownModeError(
                f"fragment_from_params called with unknown mode {params.mode!r}"
            )
        fragments += ["mode", token]

    if params.search and url_mode == "hash":
        fragments += ["search", encode_uri_component_plus(params.search)]

    return "/".join(fragments)


def query_string_from_params(
    params: Params, current_query_string: str = "", url_mode: str = "hash"
) -> str:
    """Update a query string with the ``view`` and ``q`` keys from ``params``.

    Other keys are preserved. Returns ``?<query>`` or ``""`` when empty.
    """
    pairs = parse_qsl(current_query_string.lstrip("?"), keep_blank_values=True)

    if params.view:
        pairs = _set_param(pairs, "view", params.view)
    else:
        pairs = [(k, v) for k, v in pairs if k != "view"]

    if params.search and url_mode == "history":
        pairs = _set_param(pairs, "q", params.search)

    result = urlencode(pairs)
    return f"?{result}" if result else ""


def _set_param(pairs: list[tuple[str, str]], key: str, value: str) -> list[tuple[str, str]]:
    """Replace the first ``key`` in place, dropping other occurrences."""
    result = []
    found = False
    for k, v in pairs:
        if k != key:
            result.append((k, v))
        elif not found:
            result.append((k, value))
            found = True
    if not found:
        result.append((key, value))
    return result


def read_query_string(search: str, hash_fragment: str = "") -> str:
    """Return the live query string, or one embedded in the hash fragment."""
    if search:
        return search
    found = _HASH_QUERY_RE.search(hash_fragment)
    return hash_fragment[found.start():] if found else ""


def normalize_params(params: Params, book: "Book") -> Params:
    """Resolve ``page`` into ``index`` and drop ``page``.

    If the page string matches no page, ``index`` is left unchanged.
    """
    if params.page is None:
        return replace(params)

    index = book.parse_page_string(params.page)
    if index is None:
        return replace(params, page=None)
    return replace(params, page=None, index=index)


def extend_params(params: Params, new_params: Params, book: "Book") -> Params:
    """Merge the set state fields of ``new_params`` over ``params``.

    ``new_params`` is normalized first; control flags of ``params`` are kept.
    """
    normalized = normalize_params(new_params, book)
    updates = {name: getattr(normalized, name) for name in normalized.keys()}
    return replace(params, **updates)
