"""In-process publish/subscribe channel used by the viewer and its plugins.

Listeners subscribe to an event name and are called with the payload the
publisher passes (by convention the coordinator itself). Additional
transports can be attached to mirror every publish, e.g. to relay events to
an embedding page under a namespaced name.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]
Transport = Callable[[str, Any], Any]

EVENT_NAMESPACE = "folioview"


class Events:
    """Names of the events published by the viewer."""

    STOP = "stop"
    FRAGMENT_CHANGE = "fragmentChange"
    PAGE_CHANGED = "pageChanged"
    USER_ACTION = "userAction"
    RESIZE = "resize"
    POST_INIT = "PostInit"
    FULLSCREEN_TOGGLED = "fullscreenToggled"
    ONE_PAGE_VIEW_SELECTED = "1PageViewSelected"
    TWO_PAGE_VIEW_SELECTED = "2PageViewSelected"
    THUMBNAIL_VIEW_SELECTED = "3PageViewSelected"
    BOOKMARKS_CHANGED = "bookmarksChanged"
    BOOKMARK_SELECTED = "bookmarkSelected"

    @classmethod
    def names(cls) -> list[str]:
        return [
            value
            for key, value in vars(cls).items()
            if key.isupper() and isinstance(value, str)
        ]


class EventBus:
    """Named publish/subscribe channel.

    >>> bus = EventBus()
    >>> def on_page(payload):
    ...     print("page changed", payload)
    ...
    >>> _ = bus.subscribe("pageChanged", on_page)
    >>> bus.publish("pageChanged", 3)
    page changed 3
    >>> bus.unsubscribe("pageChanged", on_page)
    >>> bus.publish("pageChanged", 4)
    """

    def __init__(self, namespace: str = EVENT_NAMESPACE):
        self.namespace = namespace
        self._listeners: dict[str, list[Listener]] = {}
        self._transports: list[Transport] = []

    def subscribe(self, name: str, listener: Listener) -> Listener:
        """Register ``listener`` for ``name``. Returns the listener."""
        self._listeners.setdefault(name, []).append(listener)
        return listener

    def unsubscribe(self, name: str, listener: Listener | None = None) -> None:
        """Remove ``listener`` from ``name``, or every listener if omitted."""
        if listener is None:
            self._listeners.pop(name, None)
            return
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, name: str) -> list[Listener]:
        return list(self._listeners.get(name, []))

    def attach_transport(self, transport: Transport) -> None:
        """Mirror every publish to ``transport(namespaced_name, payload)``."""
        self._transports.append(transport)

    def detach_transport(self, transport: Transport) -> None:
        if transport in self._transports:
            self._transports.remove(transport)

    def publish(self, name: str, payload: Any = None) -> None:
        """Call every listener of ``name`` with ``payload``.

        Listeners added or removed while publishing take effect from the
        next publish. Errors raised by listeners propagate to the caller.
        """
        listeners = list(self._listeners.get(name, []))
        logger.debug("Publishing %s to %d listener(s)", name, len(listeners))
        for listener in listeners:
            listener(payload)

        for transport in list(self._transports):
            transport(f"{self.namespace}:{name}", payload)
