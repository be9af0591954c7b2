"""Display mode state machine (one-page, two-page, thumbnails)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import OptionsParseError
from .events import Events
from .fragment import Params
from .modes import READING_MODES, Mode, mode_string_to_mode, page_view_selected_event, resolve_mode
from .reduce import quantize_reduce

if TYPE_CHECKING:
    from .coordinator import ViewportCoordinator

logger = logging.getLogger(__name__)


class ModeStateMachine:
    """Owns the active display mode and the renderer lifecycle around it."""

    def __init__(self, viewer: "ViewportCoordinator"):
        self.viewer = viewer

    @property
    def state(self):
        return self.viewer.state

    @property
    def mode(self) -> Mode | None:
        return self.state.mode

    def can_switch_to_mode(self, mode: Mode) -> bool:
        """Two-page and thumbnail views need at least two pages."""
        if mode == Mode.TWO_UP or mode == Mode.THUMB:
            if self.viewer.book.get_num_leafs() < 2:
                return False
        return True

    def get_prev_read_mode(self, mode: Mode | None) -> Mode | None:
        """Return the reading mode to remember when leaving ``mode``."""
        if mode in READING_MODES:
            return mode
        if self.state.prev_read_mode is None:
            # Initial thumbnail view
            return Mode.ONE_UP
        return self.state.prev_read_mode

    def switch_mode(
        self,
        target,
        suppress_fragment_change: bool = False,
        init: bool = False,
        page_found: bool = False,
    ) -> bool:
        """Switch to ``target`` (a Mode or ``"1up"``, ``"2up"``, ``"thumb"``).

        Before initialization completes the switch always applies. After it,
        switching to the current mode or to a mode the book cannot show is a
        no-op.

        Returns:
            True if the switch was applied.

        Raises:
            InvalidModeError: If ``target`` names no mode.
        """
        mode = resolve_mode(target)
        state = self.state
        viewer = self.viewer

        if state.init_complete:
            if mode == state.mode:
                return False
            if not self.can_switch_to_mode(mode):
                logger.debug("Cannot switch to %s with %d page(s)", mode.name,
                             viewer.book.get_num_leafs())
                return False

        viewer.trigger(Events.STOP)

        state.prev_read_mode = self.get_prev_read_mode(state.mode)

        if state.mode is not None and state.mode != mode:
            viewer.renderers[state.mode].unprepare()

        state.mode = mode

        # Reinstate the scale used before thumbnail mode
        if state.page_scale != state.reduce:
            state.reduce = state.page_scale

        if mode == Mode.THUMB:
            state.reduce = quantize_reduce(state.reduce, viewer.reduction_factors).reduce
        viewer.renderers[mode].prepare()

        if not (state.suppress_fragment_change or suppress_fragment_change):
            viewer.trigger(Events.FRAGMENT_CHANGE)
        viewer.trigger(page_view_selected_event(mode))
        return True

    def set_reduce(self, reduce: float) -> None:
        """Apply a zoom level chosen by the active renderer."""
        self.state.reduce = reduce
        if self.state.mode != Mode.THUMB:
            self.state.page_scale = reduce

    def get_initial_mode(self, params: Params, window_width: int | None = None) -> Mode:
        """Pick the mode to start in when ``params`` may not name one.

        Narrow windows start in one-page mode, others in two-page mode. A
        mode in the ``defaults`` option (``mode/<token>``) wins over both.
        """
        options = self.viewer.options
        is_mobile = bool(window_width) and window_width <= options.one_page_min_breakpoint

        if params.mode:
            initial_mode = params.mode
        elif is_mobile:
            initial_mode = Mode.ONE_UP
        else:
            initial_mode = Mode.TWO_UP

        if not self.can_switch_to_mode(initial_mode):
            initial_mode = Mode.ONE_UP

        if options.defaults:
            try:
                initial_mode = mode_string_to_mode(options.defaults)
            except OptionsParseError:
                logger.debug("Ignoring non-mode defaults %r", options.defaults)

        return initial_mode
