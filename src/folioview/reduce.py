"""Reduction factor selection.

A reduction factor is a discrete zoom level expressed as a reduction ratio
(2 means half size). Layout code computes the available factors; the
functions here only choose among them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

AUTOFIT_VALUES = ("auto", "height", "width")

ZOOM_DIRECTIONS = ("in", "out", "auto", "height", "width")


@dataclass(frozen=True)
class ReductionFactor:
    """A zoom level, optionally tagged with the autofit purpose it serves."""

    reduce: float
    autofit: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ReductionFactor":
        autofit = data.get("autofit")
        if autofit in ("none", ""):
            autofit = None
        return cls(reduce=float(data["reduce"]), autofit=autofit)

    def to_dict(self) -> dict:
        return {"reduce": self.reduce, "autofit": self.autofit}


def sort_reduction_factors(
    factors: Iterable[ReductionFactor],
) -> list[ReductionFactor]:
    """Return ``factors`` sorted ascending by ``reduce`` (stable)."""
    return sorted(factors, key=lambda rf: rf.reduce)


def quantize_reduce(
    reduce: float, factors: Sequence[ReductionFactor]
) -> ReductionFactor:
    """Return the factor whose ``reduce`` is closest to ``reduce``.

    On an exact tie the earlier-listed factor wins.

    Raises:
        ValueError: If ``factors`` is empty.
    """
    if not factors:
        raise ValueError("quantize_reduce requires at least one reduction factor")

    quantized = factors[0]
    distance = abs(reduce - quantized.reduce)
    for factor in factors[1:]:
        new_distance = abs(reduce - factor.reduce)
        if new_distance < distance:
            distance = new_distance
            quantized = factor
    return quantized


def next_reduce(
    current_reduce: float,
    direction: str,
    factors: Sequence[ReductionFactor],
) -> ReductionFactor:
    """Step from ``current_reduce`` to the next factor in ``direction``.

    Args:
        current_reduce: The reduction currently applied.
        direction: One of ``in``, ``out``, ``auto``, ``height``, ``width``.
        factors: Available factors, sorted ascending by ``reduce``.

    Returns:
        ``in``: the greatest factor below ``current_reduce`` (or the first).
        ``out``: the smallest factor above ``current_reduce`` (or the last).
        ``auto``: the factor tagged ``auto``; else the least-reducing of the
        ``height``/``width`` factors.
        ``height``/``width``: the factor with that tag.
        Anything that finds no match returns the first factor.

    Raises:
        ValueError: If ``factors`` is empty.
    """
    if not factors:
        raise ValueError("next_reduce requires at least one reduction factor")

    if direction == "in":
        new_index = 0
        for i in range(1, len(factors)):
            if factors[i].reduce < current_reduce:
                new_index = i
        return factors[new_index]

    if direction == "out":
        last_index = len(factors) - 1
        new_index = last_index
        for i in range(last_index, -1, -1):
            if factors[i].reduce > current_reduce:
                new_index = i
        return factors[new_index]

    if direction == "auto":
        for factor in factors:
            if factor.autofit == "auto":
                return factor

        choice = None
        for factor in factors:
            if factor.autofit not in ("height", "width"):
                continue
            if choice is None or choice.reduce < factor.reduce:
                choice = factor
        if choice is not None:
            return choice

    elif direction in ("height", "width"):
        for factor in factors:
            if factor.autofit == direction:
                return factor

    return factors[0]
