"""Tests for display mode switching."""

from folioview.events import Events
from folioview.fragment import Params
from folioview.modes import Mode


class TestCanSwitchToMode:
    """Two-page and thumbnail views need at least two pages."""

    def test_single_page_book(self, make_viewer):
        viewer = make_viewer(num_leafs=1)
        assert viewer.mode == Mode.ONE_UP
        assert viewer.can_switch_to_mode(Mode.ONE_UP)
        assert not viewer.can_switch_to_mode(Mode.TWO_UP)
        assert not viewer.can_switch_to_mode(Mode.THUMB)
        assert viewer.switch_mode(Mode.THUMB) is False
        assert viewer.mode == Mode.ONE_UP

    def test_two_page_book(self, make_viewer):
        viewer = make_viewer(num_leafs=2)
        assert viewer.can_switch_to_mode(Mode.THUMB)
        assert viewer.switch_mode(Mode.THUMB) is True
        assert viewer.mode == Mode.THUMB


class TestSwitchMode:
    """Tests for ModeStateMachine.switch_mode."""

    def test_same_mode_is_noop(self, make_viewer, record_events):
        viewer = make_viewer(defaults="mode/1up")
        events = record_events(viewer, Events.STOP, Events.ONE_PAGE_VIEW_SELECTED)
        assert viewer.switch_mode(Mode.ONE_UP) is False
        assert events == []

    def test_accepts_tokens(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        assert viewer.switch_mode("2up")
        assert viewer.mode == Mode.TWO_UP

    def test_event_order(self, make_viewer, record_events):
        viewer = make_viewer(defaults="mode/1up")
        events = record_events(
            viewer, Events.STOP, Events.FRAGMENT_CHANGE, Events.THUMBNAIL_VIEW_SELECTED
        )
        viewer.switch_mode(Mode.THUMB)
        assert events == ["stop", "fragmentChange", "3PageViewSelected"]

    def test_suppressed_fragment_change(self, make_viewer, record_events):
        viewer = make_viewer(defaults="mode/1up")
        events = record_events(viewer, Events.FRAGMENT_CHANGE, Events.TWO_PAGE_VIEW_SELECTED)
        viewer.switch_mode(Mode.TWO_UP, suppress_fragment_change=True)
        assert events == ["2PageViewSelected"]

    def test_renderer_lifecycle(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.switch_mode(Mode.THUMB)
        assert not viewer.renderers[Mode.ONE_UP].prepared
        assert viewer.renderers[Mode.THUMB].prepared

    def test_thumbnails_quantize_and_restore_scale(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.set_reduce(3.4)
        viewer.switch_mode(Mode.THUMB)
        assert viewer.reduce == 3
        viewer.switch_mode(Mode.ONE_UP)
        assert viewer.reduce == 3.4

    def test_prev_read_mode(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up")
        viewer.switch_mode(Mode.THUMB)
        assert viewer.state.prev_read_mode == Mode.TWO_UP
        viewer.switch_mode(Mode.ONE_UP)
        # Leaving thumbnails keeps the last reading mode
        assert viewer.state.prev_read_mode == Mode.TWO_UP

    def test_initial_thumbnail_view_defaults_prev_read_mode(self, make_viewer):
        viewer = make_viewer(defaults="mode/thumb")
        viewer.switch_mode(Mode.TWO_UP)
        assert viewer.state.prev_read_mode == Mode.ONE_UP

    def test_zoom_in_thumbnails_does_not_touch_page_scale(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up")
        viewer.set_reduce(2)
        viewer.switch_mode(Mode.THUMB)
        viewer.set_reduce(6)
        assert viewer.state.page_scale == 2


class TestInitialMode:
    """Tests for get_initial_mode."""

    def test_wide_window_starts_two_up(self, make_viewer):
        viewer = make_viewer(window_width=1200)
        assert viewer.mode == Mode.TWO_UP

    def test_narrow_window_starts_one_up(self, make_viewer):
        viewer = make_viewer(window_width=600)
        assert viewer.mode == Mode.ONE_UP

    def test_breakpoint_is_inclusive(self, make_viewer):
        viewer = make_viewer(window_width=800)
        assert viewer.mode == Mode.ONE_UP

    def test_params_mode_wins(self, make_viewer):
        viewer = make_viewer(init=False)
        assert viewer.get_initial_mode(Params(mode=Mode.THUMB), 600) == Mode.THUMB

    def test_defaults_override_everything(self, make_viewer):
        viewer = make_viewer(init=False, defaults="mode/thumb")
        assert viewer.get_initial_mode(Params(mode=Mode.TWO_UP), 600) == Mode.THUMB

    def test_unparseable_defaults_ignored(self, make_viewer):
        viewer = make_viewer(init=False, defaults="page/3")
        assert viewer.get_initial_mode(Params(), 1200) == Mode.TWO_UP

    def test_falls_back_to_one_up(self, make_viewer):
        viewer = make_viewer(init=False, num_leafs=1)
        assert viewer.get_initial_mode(Params(), 1200) == Mode.ONE_UP
