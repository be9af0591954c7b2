"""Shared fixtures for folioview tests."""

import pytest

from folioview.book import BookModel
from folioview.coordinator import ViewportCoordinator
from folioview.location import Location
from folioview.plugins import PluginRegistry


@pytest.fixture
def registry():
    """A fresh registry holding only the built-in plugins."""
    reg = PluginRegistry()
    reg.register_builtins()
    return reg


@pytest.fixture
def resume_file(tmp_path):
    return tmp_path / "resume.yaml"


@pytest.fixture
def bookmarks_file(tmp_path):
    return tmp_path / "bookmarks.yaml"


@pytest.fixture
def make_viewer(registry, resume_file, bookmarks_file):
    """Build (and by default initialize) a headless viewer.

    Extra keyword arguments are viewer options. Resume state and bookmarks are
    kept in temporary files.
    """

    def _make(
        book=None, num_leafs=20, url="/", init=True, window_width=None, navbar=None, **options
    ):
        plugins = dict(options.pop("plugins", {}))
        resume = {"state_file": str(resume_file), **plugins.get("resume", {})}
        plugins["resume"] = resume
        plugins["bookmarks"] = {
            "state_file": str(bookmarks_file),
            **plugins.get("bookmarks", {}),
        }
        options["plugins"] = plugins

        viewer = ViewportCoordinator(
            book if book is not None else BookModel.with_num_leafs(num_leafs),
            options=options,
            location=Location.from_url(url),
            navbar=navbar,
            registry=registry,
        )
        if init:
            viewer.init(window_width=window_width)
        return viewer

    return _make


@pytest.fixture
def record_events():
    """Subscribe a recorder to event names on a viewer."""

    def _record(viewer, *names):
        recorded = []
        for name in names:
            viewer.on(name, lambda _payload, name=name: recorded.append(name))
        return recorded

    return _record


@pytest.fixture
def unviewable_book():
    """20 pages; 10..13 are an unviewable run."""
    return BookModel([{"viewable": not 10 <= index <= 13} for index in range(20)])
