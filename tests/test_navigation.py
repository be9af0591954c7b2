"""Tests for page navigation."""

import pytest

from folioview.events import Events
from folioview.modes import Mode


@pytest.fixture
def one_up(make_viewer):
    return make_viewer(defaults="mode/1up")


class TestCurrentIndex:
    """Tests for NavigationController.current_index."""

    def test_one_up(self, one_up):
        one_up.jump_to_index(7)
        assert one_up.current_index() == 7

    def test_two_up_clamps_to_book(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up", num_leafs=6)
        viewer.state.first_index = 9
        assert viewer.current_index() == 5

    def test_unknown_mode_raises(self, make_viewer):
        viewer = make_viewer(init=False)
        with pytest.raises(RuntimeError):
            viewer.current_index()


class TestJumpToIndex:
    """Tests for jumping, including over unviewable runs."""

    def test_jump(self, one_up):
        one_up.jump_to_index(4)
        assert one_up.first_index == 4
        assert one_up.state.displayed_indices == [4]

    def test_jump_emits_stop(self, one_up, record_events):
        events = record_events(one_up, Events.STOP)
        one_up.jump_to_index(4)
        assert events == ["stop"]

    def test_jump_into_run_lands_on_run_start(self, make_viewer, unviewable_book):
        viewer = make_viewer(book=unviewable_book, defaults="mode/1up")
        viewer.jump_to_index(12)
        assert viewer.first_index == 10

    def test_jump_into_run_again_skips_it(self, make_viewer, unviewable_book):
        viewer = make_viewer(book=unviewable_book, defaults="mode/1up")
        viewer.jump_to_index(12)
        viewer.jump_to_index(12)
        assert viewer.first_index == 14

    def test_run_start_not_drawn_is_not_skipped(self, make_viewer, unviewable_book):
        viewer = make_viewer(book=unviewable_book, defaults="mode/1up")
        viewer.jump_to_index(12)
        viewer.state.displayed_indices = []
        assert not viewer.navigation.is_index_displayed(10)
        viewer.jump_to_index(12)
        assert viewer.first_index == 10

    def test_jump_to_run_start_is_direct(self, make_viewer, unviewable_book):
        viewer = make_viewer(book=unviewable_book, defaults="mode/1up")
        viewer.jump_to_index(10)
        assert viewer.first_index == 10

    def test_run_at_end_of_book(self, make_viewer):
        from folioview.book import BookModel

        book = BookModel([{}, {}, {"viewable": False}, {"viewable": False}])
        viewer = make_viewer(book=book, defaults="mode/1up")
        viewer.jump_to_index(2)
        viewer.jump_to_index(3)
        assert viewer.first_index == 2

    def test_jump_to_page(self, make_viewer):
        from folioview.book import BookModel

        book = BookModel([{"page_num": "i"}, {"page_num": "1"}, {"page_num": "2"}])
        viewer = make_viewer(book=book, defaults="mode/1up")
        assert viewer.jump_to_page("2") is True
        assert viewer.first_index == 2
        assert viewer.jump_to_page("xlii") is False
        assert viewer.first_index == 2


class TestUpdateFirstIndex:
    """Tests for NavigationController.update_first_index."""

    def test_same_index_emits_once(self, one_up, record_events):
        events = record_events(one_up, Events.PAGE_CHANGED, Events.FRAGMENT_CHANGE)
        one_up.update_first_index(5)
        one_up.update_first_index(5)
        assert events == ["fragmentChange", "pageChanged"]

    def test_event_order(self, one_up, record_events):
        events = record_events(
            one_up, Events.FRAGMENT_CHANGE, Events.PAGE_CHANGED, Events.USER_ACTION
        )
        one_up.update_first_index(3)
        assert events == ["fragmentChange", "pageChanged", "userAction"]

    def test_local_suppression(self, one_up, record_events):
        events = record_events(one_up, Events.FRAGMENT_CHANGE, Events.PAGE_CHANGED)
        one_up.update_first_index(3, suppress_fragment_change=True)
        assert events == ["pageChanged"]

    def test_updates_navbar(self, make_viewer):
        class NavBar:
            def __init__(self):
                self.indices = []

            def update_nav_index(self, index):
                self.indices.append(index)

        navbar = NavBar()
        viewer = make_viewer(defaults="mode/1up", init=False)
        viewer.navbar = navbar
        viewer.init()
        viewer.update_first_index(6)
        assert navbar.indices == [6]


class TestNextPrev:
    """Tests for next/prev and the direction-aware moves."""

    def test_one_up_next_prev(self, one_up):
        one_up.next()
        one_up.next()
        assert one_up.first_index == 2
        one_up.prev()
        assert one_up.first_index == 1

    def test_next_stops_at_end(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up", num_leafs=3)
        viewer.last()
        viewer.next()
        assert viewer.first_index == 2

    def test_prev_stops_at_start(self, one_up):
        one_up.prev()
        assert one_up.first_index == 0

    def test_two_up_flips(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up", num_leafs=10)
        viewer.next()
        assert viewer.state.displayed_indices == [1, 2]
        viewer.next()
        assert viewer.state.displayed_indices == [3, 4]
        viewer.prev()
        assert viewer.state.displayed_indices == [1, 2]

    def test_two_up_flip_speed(self, make_viewer):
        viewer = make_viewer(defaults="mode/2up", flip_speed="slow")
        viewer.next()
        viewer.next(flip_speed=50)
        assert viewer.renderers[Mode.TWO_UP].flips == [("next", 600), ("next", 50)]

    def test_trigger_stop_flag(self, make_viewer, record_events):
        viewer = make_viewer(defaults="mode/2up")
        events = record_events(viewer, Events.STOP)
        viewer.next(trigger_stop=False)
        assert events == []

    def test_first_last(self, one_up):
        one_up.last()
        assert one_up.first_index == 19
        one_up.first()
        assert one_up.first_index == 0

    def test_left_right_lr(self, one_up):
        one_up.right()
        assert one_up.first_index == 1
        one_up.left()
        assert one_up.first_index == 0
        one_up.rightmost()
        assert one_up.first_index == 19
        one_up.leftmost()
        assert one_up.first_index == 0

    def test_left_right_rl(self, make_viewer):
        viewer = make_viewer(defaults="mode/1up", page_progression="rl")
        viewer.left()
        assert viewer.first_index == 1
        viewer.right()
        assert viewer.first_index == 0
        viewer.leftmost()
        assert viewer.first_index == 19
        viewer.rightmost()
        assert viewer.first_index == 0
