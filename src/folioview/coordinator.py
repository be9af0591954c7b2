"""The viewer facade.

:class:`ViewportCoordinator` composes the navigation controller, the mode
state machine, the params resolver, the plugins and the event bus into the
single object client code drives. Its sub-components are replaceable: pass
alternative classes to the constructor instead of patching methods.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from pathlib import Path
from typing import Any, Callable, Coroutine, Mapping

from .book import Book
from .config import DEFAULT_OPTIONS, ViewerOptions, resolve_options
from .errors import FolioviewError
from .events import EventBus, Events, Listener
from .fragment import FULLSCREEN_VIEW, Params, fragment_from_params
from .location import Location
from .mode_state import ModeStateMachine
from .modes import Mode
from .navigation import NavigationController
from .params import ParamsResolver
from .plugins import PLUGINS, PluginLifecycleManager, PluginRegistry
from .reduce import sort_reduction_factors
from .renderers import ModeRenderer, OnePageRenderer, PageContainer, headless_renderers
from .state import ViewerState
from .utils import Throttle, parse_animation_speed

logger = logging.getLogger(__name__)

# Thumbnail redraws on scroll: quick feedback without eating cpu
DRAW_THROTTLE_SECONDS = 0.25
NAV_INDEX_THROTTLE_SECONDS = 0.25
DEFAULT_FLIP_SPEED = 400

_MODIFIER_KEYS = frozenset({"Control", "Alt", "Meta"})

RendererFactory = Callable[["ViewportCoordinator"], Mapping[Mode, ModeRenderer]]


def _settles(method):
    """Settle the coordinator's throttles once ``method`` returns."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        self.settle()
        return result

    return wrapper


class ViewportCoordinator:
    """A paginated-document viewer's navigation and viewport state.

    Args:
        book: Page metadata.
        options: ViewerOptions, or a mapping of overrides for the defaults.
        renderers: Mode-to-renderer mapping, or a factory called with the
            coordinator. Defaults to the headless renderers.
        location: The URL state is read from and written to.
        navbar: Optional navigation bar; plugins may extend it and it is told
            about index changes through ``update_nav_index(index)``.
        registry: Plugin registry to build plugins from.
    """

    def __init__(
        self,
        book: Book,
        options: ViewerOptions | Mapping[str, Any] | None = None,
        renderers: Mapping[Mode, ModeRenderer] | RendererFactory | None = None,
        location: Location | None = None,
        navbar: Any = None,
        registry: PluginRegistry | None = None,
        navigation_cls: type[NavigationController] = NavigationController,
        mode_machine_cls: type[ModeStateMachine] = ModeStateMachine,
        params_resolver_cls: type[ParamsResolver] = ParamsResolver,
    ):
        if options is None:
            options = DEFAULT_OPTIONS
        elif not isinstance(options, ViewerOptions):
            options = resolve_options(DEFAULT_OPTIONS, options)

        self.book = book
        self.options = options
        self.location = location if location is not None else Location()
        self.navbar = navbar
        self.bus = EventBus()
        self.state = ViewerState(fullscreen=options.start_fullscreen)

        self.reduction_factors = sort_reduction_factors(options.reduction_factors)
        self.flip_speed = parse_animation_speed(options.flip_speed) or DEFAULT_FLIP_SPEED
        self.theme: str | None = None
        self.window_width: int | None = None
        # Keyboard shortcuts only apply while the viewer has focus
        self.has_key_focus = True
        self.last_scroll: float | None = None
        self._escape_exits_fullscreen = False
        self._tasks: set[asyncio.Task] = set()

        self.navigation = navigation_cls(self)
        self.modes = mode_machine_cls(self)
        self.params_resolver = params_resolver_cls(self)

        if renderers is None:
            renderers = headless_renderers(self)
        elif callable(renderers):
            renderers = renderers(self)
        self.renderers: dict[Mode, ModeRenderer] = dict(renderers)

        self.draw_leafs_throttled = Throttle(self.draw_leafs, DRAW_THROTTLE_SECONDS)
        self.update_nav_index_throttled = Throttle(
            self._update_nav_index, NAV_INDEX_THROTTLE_SECONDS
        )

        registry = registry if registry is not None else PLUGINS
        if options.plugins_dir:
            registry.discover(Path(options.plugins_dir))
        self.plugins = PluginLifecycleManager(self, registry)
        # The plugins own their options from here on
        self.plugin_options = self.plugins.setup(options.plugins)

    # State accessors

    @property
    def mode(self) -> Mode | None:
        return self.state.mode

    @property
    def first_index(self) -> int | None:
        return self.state.first_index

    @property
    def reduce(self) -> float:
        return self.state.reduce

    @property
    def init_complete(self) -> bool:
        return self.state.init_complete

    @property
    def is_fullscreen(self) -> bool:
        return self.state.fullscreen

    @property
    def active_renderer(self) -> ModeRenderer:
        return self.renderers[self.state.mode]

    # Events

    def trigger(self, name: str, payload: Any = None) -> None:
        """Publish ``name``; listeners receive the coordinator by default."""
        self.bus.publish(name, self if payload is None else payload)

    def on(self, name: str, listener: Listener) -> Listener:
        return self.bus.subscribe(name, listener)

    def off(self, name: str, listener: Listener | None = None) -> None:
        self.bus.unsubscribe(name, listener)

    # Initialization

    def init(self, window_width: int | None = None) -> Params:
        """Resolve the initial view and show it. Call once.

        Returns:
            The resolved initial params.
        """
        state = self.state
        state.init_complete = False
        state.page_scale = state.reduce
        if window_width is not None:
            self.window_width = window_width

        params = self.params_resolver.resolve()
        state.first_index = params.index if params.index else 0

        params.mode = self.get_initial_mode(params, self.window_width)
        state.mode = params.mode

        if self.options.show_navbar and self.navbar is not None:
            self.plugins.extend_nav_bar(self.navbar)

        self.update_from_params(params)
        self.plugins.bind_navigation_handlers()

        # Without an initial search, later changes may update the URL
        search = self.plugins.enabled("search")
        if search is None or not search.options.get("initial_search_term"):
            state.suppress_fragment_change = False

        self.plugins.init()

        state.init_complete = True
        # Entered after init so the deferred resize is not skipped
        if self.options.start_fullscreen:
            self._run(self.enter_fullscreen(True))

        self.settle()
        logger.debug("Viewer ready at index %s in mode %s", state.first_index, state.mode)
        self.trigger(Events.POST_INIT)
        return params

    def get_initial_mode(self, params: Params, window_width: int | None = None) -> Mode:
        return self.modes.get_initial_mode(params, window_width)

    def update_from_params(self, params: Params) -> None:
        """Move the viewer to the state described by ``params``."""
        if params.mode:
            self.switch_mode(
                params.mode,
                init=params.init,
                suppress_fragment_change=not params.fragment_change,
            )

        # page is only respected if index is not set
        if params.index is not None:
            if params.index != self.current_index():
                self.jump_to_index(params.index)
        elif params.page is not None:
            if params.page != self.book.get_page_num(self.current_index()):
                self.jump_to_page(params.page)

        search = self.plugins.enabled("search")
        if search is not None and params.search is not None:
            if search.search_term != params.search:
                search.search(params.search)

        if params.theme is not None:
            self.update_theme(params.theme)

    def params_from_current(self) -> Params:
        """Describe the current view as :class:`Params`."""
        index = self.current_index()
        params = Params(index=index, mode=self.state.mode)

        page_num = self.book.get_page_num(index)
        if page_num is not None and page_num != "":
            params.page = page_num

        if self.state.fullscreen:
            params.view = FULLSCREEN_VIEW

        search = self.plugins.enabled("search")
        if search is not None:
            params.search = search.search_term

        return params

    @property
    def fragment(self) -> str:
        """The current view as a fragment string."""
        return fragment_from_params(self.params_from_current(), self.options.url_mode)

    def update_theme(self, theme: str) -> None:
        self.theme = theme

    # Navigation

    def current_index(self) -> int:
        return self.navigation.current_index()

    @_settles
    def jump_to_index(self, index: int, page_x=None, page_y=None, no_animate: bool = False) -> None:
        self.navigation.jump_to_index(index, page_x, page_y, no_animate)

    @_settles
    def jump_to_page(self, page_string: str) -> bool:
        return self.navigation.jump_to_page(page_string)

    @_settles
    def update_first_index(self, index: int, suppress_fragment_change: bool = False) -> None:
        self.navigation.update_first_index(
            index, suppress_fragment_change=suppress_fragment_change
        )

    @_settles
    def next(self, trigger_stop: bool = True, flip_speed=None) -> None:
        self.navigation.next(trigger_stop=trigger_stop, flip_speed=flip_speed)

    @_settles
    def prev(self, trigger_stop: bool = True, flip_speed=None) -> None:
        self.navigation.prev(trigger_stop=trigger_stop, flip_speed=flip_speed)

    @_settles
    def first(self) -> None:
        self.navigation.first()

    @_settles
    def last(self) -> None:
        self.navigation.last()

    @_settles
    def left(self) -> None:
        self.navigation.left()

    @_settles
    def right(self) -> None:
        self.navigation.right()

    @_settles
    def leftmost(self) -> None:
        self.navigation.leftmost()

    @_settles
    def rightmost(self) -> None:
        self.navigation.rightmost()

    @_settles
    def search(self, term: str, go_to_first_result: bool = False) -> list[int]:
        """Search page text with the search plugin.

        Raises:
            FolioviewError: If the search plugin is missing or disabled.
        """
        search = self.plugins.enabled("search")
        if search is None:
            raise FolioviewError("Search plugin is not enabled")
        return search.search(term, go_to_first_result=go_to_first_result)

    # Modes and zoom

    @_settles
    def switch_mode(
        self,
        mode,
        suppress_fragment_change: bool = False,
        init: bool = False,
        page_found: bool = False,
    ) -> bool:
        return self.modes.switch_mode(
            mode,
            suppress_fragment_change=suppress_fragment_change,
            init=init,
            page_found=page_found,
        )

    def can_switch_to_mode(self, mode: Mode) -> bool:
        return self.modes.can_switch_to_mode(mode)

    @_settles
    def set_reduce(self, reduce: float) -> None:
        self.modes.set_reduce(reduce)

    @_settles
    def zoom(self, direction: int) -> None:
        """Zoom in for ``1``, out for anything else."""
        self.active_renderer.zoom("in" if direction == 1 else "out")

    # Layout

    def draw_leafs(self) -> None:
        # One-page mode renders itself
        if self.state.mode == Mode.ONE_UP:
            return
        self.active_renderer.draw_leafs()

    @_settles
    def resize(self) -> None:
        """Re-layout for the current container size. No-op before init."""
        if not self.state.init_complete:
            return

        mode = self.state.mode
        if mode == Mode.ONE_UP:
            if self.options.one_page_autofit != "none":
                self.active_renderer.resize_page_view()
            else:
                self.state.displayed_indices = []
                self.draw_leafs_throttled()
        elif mode == Mode.THUMB:
            self.active_renderer.prepare()
        else:
            self.active_renderer.resize_page_view()
        self.trigger(Events.RESIZE)

    def on_window_resize(self, window_width: int) -> None:
        self.window_width = window_width
        if self.options.auto_resize:
            self.resize()

    @_settles
    def on_scroll(self) -> None:
        """Scroll notification; thumbnails are drawn lazily as they scroll in."""
        self.last_scroll = time.monotonic()
        if self.state.mode == Mode.THUMB:
            self.draw_leafs_throttled()

    def create_page_container(self, index: int) -> PageContainer:
        """Create the container for a page and let plugins decorate it."""
        page = self.book.get_page(index, loop=False)
        if page is None:
            raise IndexError(f"No page at index {index}")
        container = PageContainer(page, is_protected=self.options.protected)
        self.plugins.configure_page_container(container)
        return container

    def settle(self) -> None:
        """Deliver throttled calls still waiting when no event loop runs."""
        self.update_nav_index_throttled.settle()
        self.draw_leafs_throttled.settle()

    def _update_nav_index(self, index: int) -> None:
        update = getattr(self.navbar, "update_nav_index", None)
        if update is not None:
            update(index)

    def _is_narrow(self) -> bool:
        width = self.window_width
        return width is not None and width <= self.options.one_page_min_breakpoint

    # Fullscreen

    async def enter_fullscreen(self, bind_keyboard_controls: bool = True) -> None:
        current_index = self.current_index()

        if bind_keyboard_controls:
            self._escape_exits_fullscreen = True

        if self._is_narrow():
            self.switch_mode(Mode.ONE_UP)

        self.state.fullscreen = True
        renderer = self.active_renderer
        if isinstance(renderer, OnePageRenderer):
            # The new scale must apply before jumping back to the page
            await renderer.update_scale(current_index)
        self.jump_to_index(current_index)

        # Adds view=theater
        self.trigger(Events.FRAGMENT_CHANGE)
        self.trigger(Events.FULLSCREEN_TOGGLED)

        # Resize once layout has settled
        await asyncio.sleep(0)
        self.resize()

    async def exit_fullscreen(self) -> None:
        self._escape_exits_fullscreen = False

        if self.options.two_page_controls_visible and self._is_narrow():
            self.switch_mode(Mode.TWO_UP)

        self.state.fullscreen = False
        self.trigger(Events.FULLSCREEN_TOGGLED)

        await asyncio.sleep(0)
        self.resize()

        renderer = self.active_renderer
        if isinstance(renderer, OnePageRenderer):
            await renderer.update_scale(self.current_index())

        # Removes view=theater
        self.trigger(Events.FRAGMENT_CHANGE)

    async def toggle_fullscreen(self, bind_keyboard_controls: bool = True) -> None:
        if self.state.fullscreen:
            await self.exit_fullscreen()
        else:
            await self.enter_fullscreen(bind_keyboard_controls)

    def _run(self, coro: Coroutine) -> None:
        """Run ``coro`` on the running loop, or to completion if there is none."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Keyboard

    def handle_key(self, key: str, modifiers=()) -> bool:
        """Apply a keyboard shortcut.

        Returns:
            True if the key was handled (the caller should prevent its
            default action).
        """
        if not self.has_key_focus:
            return False
        if _MODIFIER_KEYS.intersection(modifiers):
            return False

        mode = self.state.mode
        if key == "Home":
            self.first()
        elif key == "End":
            self.last()
        elif key in ("ArrowDown", "PageDown", "Down"):
            # One-page and thumbnail scrolling is left to the container
            if mode != Mode.TWO_UP:
                return False
            self.next()
        elif key in ("ArrowUp", "PageUp", "Up"):
            if mode != Mode.TWO_UP:
                return False
            self.prev()
        elif key in ("ArrowLeft", "Left"):
            if mode == Mode.THUMB:
                return False
            self.left()
        elif key in ("ArrowRight", "Right"):
            if mode == Mode.THUMB:
                return False
            self.right()
        elif key in ("-", "Subtract"):
            self.zoom(-1)
        elif key in ("+", "=", "Add"):
            self.zoom(1)
        elif key in ("f", "F"):
            self._run(self.toggle_fullscreen())
        elif key == "Escape":
            if not (self.state.fullscreen and self._escape_exits_fullscreen):
                return False
            self._run(self.toggle_fullscreen())
        else:
            return False
        return True
