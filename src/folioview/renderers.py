"""Per-mode renderer contract and headless renderers.

Drawing pages is left to renderers; the coordinator only calls the methods
of :class:`ModeRenderer` at the right moments. The headless renderers below
keep track of what would be displayed without drawing anything. The CLI uses
them to simulate a viewer.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .modes import Mode
from .reduce import next_reduce
from .utils import clamp

if TYPE_CHECKING:
    from .book import Page
    from .coordinator import ViewportCoordinator

MIN_THUMB_COLUMNS = 2
MAX_THUMB_COLUMNS = 8


@dataclass
class PageContainer:
    """Container created for a page by the rendering layer.

    Plugins decorate it through ``configure_page_container``.
    """

    page: "Page"
    is_protected: bool = False
    classes: set[str] = field(default_factory=lambda: {"BRpagecontainer"})
    attributes: dict[str, Any] = field(default_factory=dict)
    children: list[Any] = field(default_factory=list)


class ModeRenderer(ABC):
    """Renders one display mode."""

    mode: Mode

    def __init__(self, viewer: "ViewportCoordinator"):
        self.viewer = viewer

    @abstractmethod
    def prepare(self) -> None:
        """Build the view for this mode. Called when the mode is entered."""
        ...

    def unprepare(self) -> None:
        """Tear down the view. Called when another mode is entered."""
        pass

    @abstractmethod
    def resize_page_view(self) -> None:
        ...

    @abstractmethod
    def draw_leafs(self) -> None:
        ...

    @abstractmethod
    def zoom(self, direction: str) -> None:
        """Zoom ``"in"`` or ``"out"``."""
        ...

    @abstractmethod
    def jump_to_index(
        self,
        index: int,
        page_x: float | None = None,
        page_y: float | None = None,
        no_animate: bool = False,
    ) -> None:
        ...


class OnePageRenderer(ModeRenderer):
    mode = Mode.ONE_UP

    async def update_scale(self, index: int) -> None:
        """Recompute the default scale for ``index`` and wait for it to apply."""
        pass


class TwoPageRenderer(ModeRenderer):
    mode = Mode.TWO_UP

    @abstractmethod
    def flip_animation(self, direction: str, flip_speed: int) -> None:
        """Flip to the ``"next"`` or ``"prev"`` spread."""
        ...


class ThumbnailRenderer(ModeRenderer):
    mode = Mode.THUMB


class _HeadlessMixin:
    viewer: "ViewportCoordinator"

    prepared = False

    def _num_leafs(self) -> int:
        return self.viewer.book.get_num_leafs()

    def _clamp_index(self, index: int) -> int:
        return int(clamp(index, 0, max(self._num_leafs() - 1, 0)))

    def _zoom_reduce(self, direction: str) -> None:
        factor = next_reduce(self.viewer.reduce, direction, self.viewer.reduction_factors)
        self.viewer.set_reduce(factor.reduce)


class HeadlessOnePageRenderer(_HeadlessMixin, OnePageRenderer):
    """Shows a single page; zooms through the reduction factors."""

    def prepare(self) -> None:
        self.prepared = True
        self.jump_to_index(self.viewer.first_index, no_animate=True)

    def unprepare(self) -> None:
        self.prepared = False

    def resize_page_view(self) -> None:
        self.draw_leafs()

    def draw_leafs(self) -> None:
        self.viewer.state.displayed_indices = [self._clamp_index(self.viewer.first_index)]

    def zoom(self, direction: str) -> None:
        self._zoom_reduce(direction)

    def jump_to_index(self, index, page_x=None, page_y=None, no_animate=False):
        self.viewer.update_first_index(self._clamp_index(index))
        self.draw_leafs()

    async def update_scale(self, index: int) -> None:
        autofit = self.viewer.options.one_page_autofit
        if autofit and autofit != "none":
            self._zoom_reduce(autofit)
        # Let the new scale settle before the caller continues
        await asyncio.sleep(0)


class HeadlessTwoPageRenderer(_HeadlessMixin, TwoPageRenderer):
    """Shows spreads: the first leaf alone, then leaf pairs (1, 2), (3, 4)..."""

    def __init__(self, viewer: "ViewportCoordinator"):
        super().__init__(viewer)
        self.flips: list[tuple[str, int]] = []

    def spread_start(self, index: int) -> int:
        index = self._clamp_index(index)
        if index == 0 or index % 2 == 1:
            return index
        return index - 1

    def spread_indices(self, index: int) -> list[int]:
        start = self.spread_start(index)
        if start == 0:
            return [0]
        return [i for i in (start, start + 1) if i < self._num_leafs()]

    def prepare(self) -> None:
        self.prepared = True
        self.jump_to_index(self.viewer.first_index, no_animate=True)

    def unprepare(self) -> None:
        self.prepared = False

    def resize_page_view(self) -> None:
        self.draw_leafs()

    def draw_leafs(self) -> None:
        self.viewer.state.displayed_indices = self.spread_indices(self.viewer.first_index)

    def zoom(self, direction: str) -> None:
        self._zoom_reduce(direction)

    def jump_to_index(self, index, page_x=None, page_y=None, no_animate=False):
        self.viewer.update_first_index(self.spread_start(index))
        self.draw_leafs()

    def flip_animation(self, direction: str, flip_speed: int) -> None:
        self.flips.append((direction, flip_speed))
        start = self.spread_start(self.viewer.first_index)
        if direction == "next":
            target = start + 2 if start > 0 else 1
            if target >= self._num_leafs():
                return
        else:
            target = max(start - 2, 0)
        self.jump_to_index(target)


class HeadlessThumbnailRenderer(_HeadlessMixin, ThumbnailRenderer):
    """Shows a grid of ``columns`` x ``rows`` thumbnails around the current leaf."""

    rows = 3

    def __init__(self, viewer: "ViewportCoordinator"):
        super().__init__(viewer)
        self.columns = viewer.options.thumb_columns

    def prepare(self) -> None:
        self.prepared = True
        self.jump_to_index(self.viewer.first_index, no_animate=True)

    def unprepare(self) -> None:
        self.prepared = False

    def resize_page_view(self) -> None:
        self.prepare()

    def draw_leafs(self) -> None:
        first = self._clamp_index(self.viewer.first_index)
        row_start = first - first % self.columns
        end = min(self._num_leafs(), row_start + self.columns * self.rows)
        self.viewer.state.displayed_indices = list(range(row_start, end))

    def zoom(self, direction: str) -> None:
        old_columns = self.columns
        if direction == "in":
            self.columns -= 1
        elif direction == "out":
            self.columns += 1
        self.columns = int(clamp(self.columns, MIN_THUMB_COLUMNS, MAX_THUMB_COLUMNS))
        if self.columns != old_columns:
            self.prepare()

    def jump_to_index(self, index, page_x=None, page_y=None, no_animate=False):
        self.viewer.update_first_index(self._clamp_index(index))
        self.draw_leafs()


def headless_renderers(viewer: "ViewportCoordinator") -> dict[Mode, ModeRenderer]:
    """Build one headless renderer per mode for ``viewer``."""
    return {
        Mode.ONE_UP: HeadlessOnePageRenderer(viewer),
        Mode.TWO_UP: HeadlessTwoPageRenderer(viewer),
        Mode.THUMB: HeadlessThumbnailRenderer(viewer),
    }
