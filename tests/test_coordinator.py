"""Tests for folioview.coordinator module."""

import asyncio

import pytest

from folioview.book import BookModel
from folioview.config import ViewerOptions
from folioview.coordinator import ViewportCoordinator
from folioview.errors import ConfigError, FolioviewError
from folioview.events import Events
from folioview.fragment import Params
from folioview.modes import Mode
from folioview.navigation import NavigationController
from folioview.plugins import PluginRegistry
from folioview.renderers import headless_renderers


class TestConstruction:
    """Tests for building a coordinator."""

    def test_options_mapping(self):
        viewer = ViewportCoordinator(
            BookModel.with_num_leafs(3), options={"flip_speed": 300}, registry=PluginRegistry()
        )
        assert isinstance(viewer.options, ViewerOptions)
        assert viewer.flip_speed == 300

    def test_invalid_options(self):
        with pytest.raises(ConfigError):
            ViewportCoordinator(
                BookModel.with_num_leafs(3), options={"url_mode": "fragment"}
            )

    def test_reduction_factors_sorted(self, make_viewer):
        viewer = make_viewer(init=False, reduction_factors=[{"reduce": 4}, {"reduce": 1}])
        assert [rf.reduce for rf in viewer.reduction_factors] == [1, 4]

    def test_custom_navigation_class(self, make_viewer):
        class CountingNavigation(NavigationController):
            jumps = 0

            def jump_to_index(self, index, *args, **kwargs):
                CountingNavigation.jumps += 1
                super().jump_to_index(index, *args, **kwargs)

        viewer = ViewportCoordinator(
            BookModel.with_num_leafs(5),
            options={"defaults": "mode/1up"},
            registry=PluginRegistry(),
            navigation_cls=CountingNavigation,
        )
        viewer.init()
        viewer.jump_to_index(3)
        assert CountingNavigation.jumps == 1

    def test_renderer_factory(self):
        built = []

        def factory(viewer):
            built.append(viewer)
            return headless_renderers(viewer)

        viewer = ViewportCoordinator(
            BookModel.with_num_leafs(5), renderers=factory, registry=PluginRegistry()
        )
        assert built == [viewer]
        assert set(viewer.renderers) == set(Mode)


class TestParamsFromCurrent:
    """Tests for params_from_current and update_from_params."""

    def test_params_from_current(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.jump_to_index(5)
        params = viewer.params_from_current()
        assert params.index == 5
        assert params.page == "n5"
        assert params.mode == Mode.ONE_UP
        assert params.view is None
        assert viewer.fragment == "page/n5/mode/1up"

    def test_fragment_two_up(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up")
        viewer.jump_to_index(5)
        assert viewer.fragment == "page/n5/mode/2up"

    def test_fragment_includes_search(self, make_viewer):
        book = BookModel([{"text": "whale"}, {"text": "sea"}])
        viewer = make_viewer(book=book, defaults="mode/1up")
        viewer.search("sea")
        assert viewer.fragment == "page/n0/mode/1up/search/sea"

    def test_update_from_params(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.update_from_params(Params(index=7, mode=Mode.THUMB, theme="dark"))
        assert viewer.mode == Mode.THUMB
        assert viewer.first_index == 7
        assert viewer.theme == "dark"

    def test_update_from_params_page(self, make_viewer):
        book = BookModel([{"page_num": str(n)} for n in range(1, 6)])
        viewer = make_viewer(book=book, defaults="mode/1up")
        viewer.update_from_params(Params(page="4"))
        assert viewer.first_index == 3

    def test_update_from_params_search(self, make_viewer):
        book = BookModel([{"text": "whale"}, {"text": "sea"}])
        viewer = make_viewer(book=book, defaults="mode/1up")
        viewer.update_from_params(Params(search="sea"))
        assert viewer.plugins.get("search").results == [1]


class TestSearch:
    def test_search_requires_plugin(self, make_viewer):
        viewer = make_viewer(plugins={"search": {"enabled": False}})
        with pytest.raises(FolioviewError, match="Search plugin"):
            viewer.search("whale")

    def test_search_jumps(self, make_viewer):
        book = BookModel([{"text": "a"}, {"text": "b"}, {"text": "B side"}])
        viewer = make_viewer(book=book, defaults="mode/1up")
        assert viewer.search("b", go_to_first_result=True) == [1, 2]
        assert viewer.first_index == 1


class TestZoom:
    """Tests for zoom."""

    def test_zoom_in_and_out(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.set_reduce(3)
        viewer.zoom(1)
        assert viewer.reduce == 2
        viewer.zoom(-1)
        assert viewer.reduce == 3
        viewer.zoom(0)
        assert viewer.reduce == 4

    def test_thumbnail_zoom_changes_columns(self, make_viewer):
        viewer = make_viewer(defaults="mode/thumb")
        renderer = viewer.renderers[Mode.THUMB]
        viewer.zoom(1)
        assert renderer.columns == 5
        viewer.zoom(-1)
        viewer.zoom(-1)
        assert renderer.columns == 7


class TestResize:
    """Tests for resize and window resize handling."""

    def test_noop_before_init(self, make_viewer, record_events):
        viewer = make_viewer(init=False)
        events = record_events(viewer, Events.RESIZE)
        viewer.resize()
        assert events == []

    def test_emits_resize(self, make_viewer, record_events):
        viewer = make_viewer()
        events = record_events(viewer, Events.RESIZE)
        viewer.resize()
        assert events == ["resize"]

    def test_one_up_without_autofit_redraws(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up", one_page_autofit="none")
        viewer.jump_to_index(4)
        viewer.resize()
        assert viewer.state.displayed_indices == []

    def test_window_resize_respects_auto_resize(self, make_viewer, record_events):
        viewer = make_viewer(auto_resize=False)
        events = record_events(viewer, Events.RESIZE)
        viewer.on_window_resize(500)
        assert viewer.window_width == 500
        assert events == []


class TestScroll:
    def test_thumbnail_scroll_draws_throttled(self, make_viewer):
        viewer = make_viewer(defaults="mode/thumb")
        renderer = viewer.renderers[Mode.THUMB]
        calls = []
        renderer.draw_leafs = lambda: calls.append(1)

        viewer.on_scroll()
        viewer.on_scroll()
        assert viewer.last_scroll is not None
        # Without an event loop the trailing draw is delivered right away
        assert calls == [1, 1]
        assert not viewer.draw_leafs_throttled.pending

    def test_thumbnail_scroll_on_loop_defers_trailing_draw(self, make_viewer):
        viewer = make_viewer(defaults="mode/thumb")
        renderer = viewer.renderers[Mode.THUMB]
        calls = []
        renderer.draw_leafs = lambda: calls.append(1)

        async def scenario():
            viewer.on_scroll()
            viewer.on_scroll()
            assert calls == [1]
            assert viewer.draw_leafs_throttled.pending
            await asyncio.sleep(0.4)

        asyncio.run(scenario())
        assert calls == [1, 1]
        assert not viewer.draw_leafs_throttled.pending


class RecordingNavbar:
    def __init__(self):
        self.indices = []

    def update_nav_index(self, index):
        self.indices.append(index)


class TestNavIndexUpdates:
    """Tests for keeping the navbar in step with the current page."""

    def test_rapid_navigation_without_loop_reaches_navbar(self, make_viewer):
        navbar = RecordingNavbar()
        viewer = make_viewer(defaults="mode/1up", navbar=navbar)
        viewer.next()
        viewer.next()
        viewer.next()
        assert viewer.first_index == 3
        assert navbar.indices[-1] == 3
        assert not viewer.update_nav_index_throttled.pending

    def test_rapid_navigation_on_loop_reaches_navbar(self, make_viewer):
        navbar = RecordingNavbar()
        viewer = make_viewer(defaults="mode/1up", navbar=navbar)

        async def scenario():
            viewer.next()
            viewer.next()
            viewer.next()
            await asyncio.sleep(0.4)

        asyncio.run(scenario())
        assert navbar.indices[-1] == 3

    def test_one_up_scroll_does_not_draw(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.on_scroll()
        assert not viewer.draw_leafs_throttled.pending
        assert viewer.last_scroll is not None


class TestPageContainer:
    def test_plugins_decorate_container(self, make_viewer):
        viewer = make_viewer(protected=True)
        plugin = viewer.plugins.get("search")
        plugin.configure_page_container = lambda c: c.classes.add("searchable")
        container = viewer.create_page_container(2)
        assert container.page.index == 2
        assert container.is_protected
        assert "searchable" in container.classes
        assert "BRpagecontainer" in container.classes

    def test_out_of_range(self, make_viewer):
        viewer = make_viewer()
        with pytest.raises(IndexError):
            viewer.create_page_container(99)


class TestFullscreen:
    """Tests for the fullscreen coroutines."""

    def test_enter_and_exit(self, make_viewer, record_events):
        viewer = make_viewer(defaults="mode/1up")
        viewer.jump_to_index(4)
        events = record_events(
            viewer, Events.FRAGMENT_CHANGE, Events.FULLSCREEN_TOGGLED, Events.RESIZE
        )

        asyncio.run(viewer.enter_fullscreen())
        assert viewer.is_fullscreen
        assert viewer.first_index == 4
        assert viewer.location.search == "?view=theater"
        assert events == ["fragmentChange", "fullscreenToggled", "resize"]

        del events[:]
        asyncio.run(viewer.exit_fullscreen())
        assert not viewer.is_fullscreen
        assert viewer.location.search == ""
        assert events == ["fullscreenToggled", "resize", "fragmentChange"]

    def test_enter_on_narrow_window_switches_to_one_up(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up", window_width=600)
        asyncio.run(viewer.enter_fullscreen())
        assert viewer.mode == Mode.ONE_UP

    def test_exit_on_narrow_window_switches_to_two_up(self, make_viewer):
        viewer = make_viewer(window_width=600)
        asyncio.run(viewer.enter_fullscreen())
        asyncio.run(viewer.exit_fullscreen())
        assert viewer.mode == Mode.TWO_UP

    def test_toggle(self, make_viewer):
        viewer = make_viewer()
        asyncio.run(viewer.toggle_fullscreen())
        assert viewer.is_fullscreen
        asyncio.run(viewer.toggle_fullscreen())
        assert not viewer.is_fullscreen

    def test_start_fullscreen(self, make_viewer, record_events):
        viewer = make_viewer(start_fullscreen=True, init=False)
        events = record_events(viewer, Events.FULLSCREEN_TOGGLED, Events.RESIZE, Events.POST_INIT)
        viewer.init()
        assert viewer.is_fullscreen
        assert viewer.params_from_current().view == "theater"
        assert events == [Events.FULLSCREEN_TOGGLED, Events.RESIZE, Events.POST_INIT]

    def test_start_fullscreen_on_loop(self, make_viewer, record_events):
        viewer = make_viewer(start_fullscreen=True, init=False)
        events = record_events(viewer, Events.FULLSCREEN_TOGGLED, Events.RESIZE)

        async def scenario():
            viewer.init()
            await asyncio.sleep(0.01)

        asyncio.run(scenario())
        assert viewer.is_fullscreen
        assert events == [Events.FULLSCREEN_TOGGLED, Events.RESIZE]


class TestHandleKey:
    """Tests for keyboard shortcuts."""

    def test_home_end(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        assert viewer.handle_key("End")
        assert viewer.first_index == 19
        assert viewer.handle_key("Home")
        assert viewer.first_index == 0

    def test_arrows_in_two_up(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up")
        assert viewer.handle_key("ArrowRight")
        assert viewer.first_index == 1
        assert viewer.handle_key("PageDown")
        assert viewer.first_index == 3
        assert viewer.handle_key("ArrowLeft")
        assert viewer.first_index == 1

    def test_vertical_keys_only_in_two_up(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        assert not viewer.handle_key("ArrowDown")
        assert viewer.first_index == 0

    def test_horizontal_keys_not_in_thumbnails(self, make_viewer):
        viewer = make_viewer(defaults="mode/thumb")
        assert not viewer.handle_key("ArrowRight")

    def test_modifiers_ignored(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        assert not viewer.handle_key("End", modifiers=("Control",))
        assert viewer.first_index == 0

    def test_without_focus(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.has_key_focus = False
        assert not viewer.handle_key("End")

    def test_zoom_keys(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.set_reduce(3)
        assert viewer.handle_key("+")
        assert viewer.reduce == 2
        assert viewer.handle_key("-")
        assert viewer.reduce == 3

    def test_fullscreen_and_escape(self, make_viewer):
        viewer = make_viewer()
        assert not viewer.handle_key("Escape")
        assert viewer.handle_key("f")
        assert viewer.is_fullscreen
        assert viewer.handle_key("Escape")
        assert not viewer.is_fullscreen

    def test_unknown_key(self, make_viewer):
        assert not make_viewer().handle_key("q")


class TestEventApi:
    def test_payload_defaults_to_viewer(self, make_viewer):
        viewer = make_viewer()
        payloads = []
        viewer.on("custom", payloads.append)
        viewer.trigger("custom")
        viewer.trigger("custom", 5)
        assert payloads == [viewer, 5]

    def test_off(self, make_viewer):
        viewer = make_viewer()
        payloads = []
        viewer.on("custom", payloads.append)
        viewer.off("custom", payloads.append)
        viewer.trigger("custom")
        assert payloads == []
