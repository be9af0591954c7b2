"""Mutable view state owned by the coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field

from .modes import Mode

# Start very small; the first prepared mode picks a real zoom level
INITIAL_REDUCE = 8


@dataclass
class ViewerState:
    """What is currently shown.

    Only the navigation controller and the mode state machine change it.
    ``first_index`` is the leading page of the spread in two-page mode and
    the shown page otherwise; it is None until the viewer is initialized.
    """

    mode: Mode | None = None
    first_index: int | None = None
    reduce: float = INITIAL_REDUCE
    # Reduce to restore when leaving thumbnail mode
    page_scale: float = INITIAL_REDUCE
    fullscreen: bool = False
    displayed_indices: list[int] = field(default_factory=list)
    # Suppresses fragmentChange while reaching the initial state
    suppress_fragment_change: bool = False
    # Last reading mode (one- or two-page) before the current one
    prev_read_mode: Mode | None = None
    init_complete: bool = False
