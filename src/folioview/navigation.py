"""Page navigation: which page is current and how to move between pages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .events import Events
from .modes import Mode
from .utils import clamp, parse_animation_speed

if TYPE_CHECKING:
    from .coordinator import ViewportCoordinator

logger = logging.getLogger(__name__)


class NavigationController:
    """Owns ``first_index`` and the moves between pages.

    Unviewable runs (contiguous pages that may not be shown) are skipped as a
    single unit: jumping into a run lands on its first page, and jumping into
    it again from there moves past it.
    """

    def __init__(self, viewer: "ViewportCoordinator"):
        self.viewer = viewer

    @property
    def state(self):
        return self.viewer.state

    def current_index(self) -> int:
        """Return the active index.

        Raises:
            RuntimeError: If the current mode is not a known mode.
        """
        mode = self.state.mode
        if mode == Mode.ONE_UP or mode == Mode.THUMB:
            return self.state.first_index
        if mode == Mode.TWO_UP:
            # Only indices actually present in the book
            num_leafs = self.viewer.book.get_num_leafs()
            return int(clamp(self.state.first_index, 0, num_leafs - 1))
        raise RuntimeError(f"current_index called for unimplemented mode {mode!r}")

    def is_index_displayed(self, index: int) -> bool:
        # Nothing counts as displayed until a renderer has drawn
        return index in self.state.displayed_indices

    def jump_to_index(
        self,
        index: int,
        page_x: float | None = None,
        page_y: float | None = None,
        no_animate: bool = False,
    ) -> None:
        """Make ``index`` the current page, skipping into unviewable runs."""
        page = self.viewer.book.get_page(index)

        if not page.is_viewable and page.unviewables_start != page.index:
            # Already showing the start of this run: go past the whole run
            if self.is_index_displayed(page.unviewables_start):
                next_page = page.find_next(combine_consecutive_unviewables=True)
                new_index = next_page.index if next_page is not None else None
            else:
                new_index = page.unviewables_start

            # A book can end on an unviewable run; nothing to jump to then
            if new_index is None:
                logger.debug("No viewable page after unviewable run at %d", index)
                return
            self.jump_to_index(new_index, page_x, page_y, no_animate)
            return

        self.viewer.trigger(Events.STOP)
        self.viewer.active_renderer.jump_to_index(index, page_x, page_y, no_animate)

    def jump_to_page(self, page_string: str) -> bool:
        """Jump to a page given as a page string.

        Returns:
            True if the page was found.
        """
        index = self.viewer.book.parse_page_string(page_string)
        if index is None:
            return False
        self.jump_to_index(index)
        return True

    def update_first_index(self, index: int, suppress_fragment_change: bool = False) -> None:
        """Set ``first_index`` and announce the page change."""
        state = self.state
        if state.first_index == index:
            return

        state.first_index = index
        if not (state.suppress_fragment_change or suppress_fragment_change):
            self.viewer.trigger(Events.FRAGMENT_CHANGE)

        # An initial search suppresses URL changes until a page change that
        # is not locally suppressed
        search = self.viewer.plugins.get("search")
        if (
            search is not None
            and search.options.get("initial_search_term")
            and not suppress_fragment_change
        ):
            state.suppress_fragment_change = False

        self.viewer.trigger(Events.PAGE_CHANGED)
        # Tells listeners the user is actively reading
        self.viewer.trigger(Events.USER_ACTION)
        self.viewer.update_nav_index_throttled(index)

    def next(self, trigger_stop: bool = True, flip_speed=None) -> None:
        state = self.state
        if state.mode == Mode.TWO_UP:
            if trigger_stop:
                self.viewer.trigger(Events.STOP)
            speed = parse_animation_speed(flip_speed) or self.viewer.flip_speed
            self.viewer.renderers[Mode.TWO_UP].flip_animation("next", flip_speed=speed)
        elif state.first_index < self.viewer.book.get_num_leafs() - 1:
            self.jump_to_index(state.first_index + 1)

    def prev(self, trigger_stop: bool = True, flip_speed=None) -> None:
        state = self.state
        if state.first_index < 1:
            return

        if state.mode == Mode.TWO_UP:
            if trigger_stop:
                self.viewer.trigger(Events.STOP)
            speed = parse_animation_speed(flip_speed) or self.viewer.flip_speed
            self.viewer.renderers[Mode.TWO_UP].flip_animation("prev", flip_speed=speed)
        else:
            self.jump_to_index(state.first_index - 1)

    def first(self) -> None:
        self.jump_to_index(0)

    def last(self) -> None:
        self.jump_to_index(self.viewer.book.get_num_leafs() - 1)

    @property
    def right_to_left(self) -> bool:
        return self.viewer.options.page_progression == "rl"

    def right(self) -> None:
        """Flip the right page over onto the left."""
        if self.right_to_left:
            self.prev()
        else:
            self.next()

    def left(self) -> None:
        """Flip the left page over onto the right."""
        if self.right_to_left:
            self.next()
        else:
            self.prev()

    def rightmost(self) -> None:
        if self.right_to_left:
            self.first()
        else:
            self.last()

    def leftmost(self) -> None:
        if self.right_to_left:
            self.last()
        else:
            self.first()
