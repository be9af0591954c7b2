"""Keep the viewer's URL in sync with its state."""

from __future__ import annotations

from ...events import Events
from ...fragment import (
    fragment_from_params,
    params_from_fragment,
    query_string_from_params,
)
from ..base import ReaderPlugin


class UrlPlugin(ReaderPlugin):
    """Writes the current state to the location on every ``fragmentChange``.

    In ``hash`` URL mode the fragment goes in the hash; in ``history`` mode
    it is appended to ``url_history_base_path``. :meth:`location_changed`
    applies a URL changed from outside (e.g. the user editing it).
    """

    name = "url"

    def __init__(self, viewer):
        super().__init__(viewer)
        self.old_location_hash: str | None = None

    def init(self) -> None:
        if not self.enabled or not self.viewer.options.enable_url_plugin:
            return
        self.viewer.on(Events.FRAGMENT_CHANGE, self.update_url)

    def update_url(self, _viewer=None) -> None:
        viewer = self.viewer
        location = viewer.location
        url_mode = viewer.options.url_mode
        base_path = viewer.options.url_history_base_path

        params = viewer.params_from_current()
        new_fragment = fragment_from_params(params, url_mode)
        current_fragment = location.read_fragment(url_mode, base_path)
        current_query = location.search
        new_query = query_string_from_params(params, current_query, url_mode)
        if current_fragment == new_fragment and current_query == new_query:
            return

        if url_mode == "history":
            base = base_path.rstrip("/")
            path = f"{base}/{new_fragment}" if new_fragment else (base or "/")
            location.replace(pathname=path, search=new_query)
        else:
            location.replace(hash=f"#{new_fragment}", search=new_query)
        self.old_location_hash = new_fragment + new_query

    def location_changed(self) -> bool:
        """Apply the location's fragment if it was changed externally.

        Returns:
            True if the viewer was updated.
        """
        viewer = self.viewer
        location = viewer.location
        fragment = location.read_fragment(
            viewer.options.url_mode, viewer.options.url_history_base_path
        )
        if fragment + location.search == self.old_location_hash:
            return False
        self.old_location_hash = fragment + location.search
        viewer.update_from_params(params_from_fragment(fragment))
        return True
