"""Flip through the book automatically."""

from __future__ import annotations

import asyncio

from ...events import Events
from ...modes import Mode
from ..base import ReaderPlugin


class AutoplayPlugin(ReaderPlugin):
    """Advances one spread every ``flip_delay`` ms in two-page mode.

    Wraps around to the first page at the end of the book. Any ``stop``
    event it did not cause itself (user navigation) stops playback.
    """

    name = "autoplay"
    default_options = {"enabled": True, "flip_speed": 2000, "flip_delay": 5000}

    def __init__(self, viewer):
        super().__init__(viewer)
        self.playing = False
        self._advancing = False

    def init(self) -> None:
        if not self.enabled:
            return
        self.viewer.on(Events.STOP, self._on_stop)

    def toggle(self) -> None:
        if self.playing:
            self.stop()
        else:
            self.start()

    def start(self) -> None:
        viewer = self.viewer
        self._advancing = True
        try:
            if viewer.mode != Mode.TWO_UP and viewer.can_switch_to_mode(Mode.TWO_UP):
                viewer.switch_mode(Mode.TWO_UP)
        finally:
            self._advancing = False
        self.playing = True

    def stop(self) -> None:
        self.playing = False

    def tick(self) -> None:
        """Advance one step if playing."""
        if not self.playing:
            return
        viewer = self.viewer
        self._advancing = True
        try:
            last_index = viewer.book.get_num_leafs() - 1
            if last_index in viewer.state.displayed_indices or viewer.current_index() >= last_index:
                viewer.jump_to_index(0)
            else:
                viewer.next(trigger_stop=False, flip_speed=self.options["flip_speed"])
        finally:
            self._advancing = False

    async def play(self) -> None:
        """Start playing and keep ticking until stopped."""
        self.start()
        while self.playing:
            await asyncio.sleep(self.options["flip_delay"] / 1000)
            self.tick()

    def _on_stop(self, _viewer) -> None:
        if self.playing and not self._advancing:
            self.stop()
