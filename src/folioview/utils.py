"""Small helpers shared across folioview modules."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable
from urllib.parse import quote, unquote


# Named animation speeds, in milliseconds
ANIMATION_SPEEDS = {"fast": 200, "slow": 600}


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp ``value`` into ``[lower, upper]``."""
    return max(lower, min(value, upper))


def parse_animation_speed(speed) -> int | None:
    """Parse an animation speed given as milliseconds or ``"fast"``/``"slow"``.

    Returns None for anything unparseable (including None), so callers can
    fall back with ``parse_animation_speed(x) or default``.
    """
    if speed is None or isinstance(speed, bool):
        return None
    if isinstance(speed, str):
        if speed in ANIMATION_SPEEDS:
            return ANIMATION_SPEEDS[speed]
        try:
            speed = float(speed)
        except ValueError:
            return None
    if isinstance(speed, (int, float)):
        if speed != speed:  # NaN
            return None
        return int(speed)
    return None


def encode_uri_component_plus(value: str) -> str:
    """Percent-encode a value, writing spaces as ``+``."""
    return quote(str(value), safe="!'()*-._~ ").replace(" ", "+")


def decode_uri_component_plus(value: str) -> str:
    """Decode a percent-encoded value, treating ``+`` as a space."""
    return unquote(value.replace("+", " "))


def encode_uri_component(value: str) -> str:
    """Percent-encode a value the way browsers' ``encodeURIComponent`` does."""
    return quote(str(value), safe="!'()*-._~")


class Throttle:
    """Rate-limit calls to ``func`` to at most one per ``wait`` seconds.

    The leading call runs immediately. Calls arriving inside the window are
    collapsed into a single trailing call which runs when the window closes.
    The trailing call is scheduled on the running asyncio loop if there is
    one. Without a loop nothing will wake up later, so the owner calls
    :meth:`settle` once it is done with a burst of calls.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.func = func
        self.wait = wait
        self._clock = clock
        self._last_call: float | None = None
        self._pending: tuple[tuple, dict] | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._handle_loop: asyncio.AbstractEventLoop | None = None

    def __call__(self, *args, **kwargs) -> None:
        now = self._clock()
        if self._last_call is None or now - self._last_call >= self.wait:
            self._pending = None
            self._cancel()
            self._invoke(now, args, kwargs)
            return

        self._pending = (args, kwargs)
        if not self._scheduled():
            self._schedule(now)

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def flush(self) -> None:
        """Run the trailing call now, if one is waiting."""
        self._handle = None
        self._handle_loop = None
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        self._invoke(self._clock(), args, kwargs)

    def settle(self) -> None:
        """Deliver the trailing call now unless a loop will deliver it later."""
        if self._pending is None or self._scheduled():
            return
        if not self._schedule(self._clock()):
            self.flush()

    def cancel(self) -> None:
        """Drop any pending trailing call."""
        self._pending = None
        self._cancel()

    def _scheduled(self) -> bool:
        # A timer left on a loop that is no longer running never fires
        if self._handle is None:
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is self._handle_loop and not self._handle.cancelled():
            return True
        self._cancel()
        return False

    def _schedule(self, now: float) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False
        delay = max(0.0, self.wait - (now - self._last_call))
        self._handle = loop.call_later(delay, self.flush)
        self._handle_loop = loop
        return True

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._handle_loop = None

    def _invoke(self, now: float, args: tuple, kwargs: dict) -> None:
        self._last_call = now
        self.func(*args, **kwargs)
