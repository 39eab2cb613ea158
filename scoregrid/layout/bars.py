"""Logical bars made of one or several vertical sticks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .geometry import LEFT, HorizontalSide
from .sticks import VerticalCandidate


@dataclass(order=True, frozen=True)
class StickX:
    """Abscissa where a stick crosses a given staff."""

    x: int
    stick: VerticalCandidate = field(compare=False)


class Bar:
    """Barline at one staff side, as a pack of sticks ordered by abscissa."""

    def __init__(self, stick: VerticalCandidate) -> None:
        self._sticks: List[VerticalCandidate] = [stick]

    @property
    def sticks(self) -> Tuple[VerticalCandidate, ...]:
        return tuple(self._sticks)

    def append_stick(self, stick: VerticalCandidate) -> None:
        self._sticks.append(stick)

    def prepend_stick(self, stick: VerticalCandidate) -> None:
        self._sticks.insert(0, stick)

    def get_stick(self, side: HorizontalSide) -> VerticalCandidate:
        return self._sticks[0] if side is LEFT else self._sticks[-1]

    @property
    def reference_stick(self) -> VerticalCandidate:
        """Rightmost stick, used for every intersection with the staff."""

        return self._sticks[-1]

    def __repr__(self) -> str:
        return "Bar(" + ",".join(f"F{stick.id}" for stick in self._sticks) + ")"


__all__ = ["Bar", "StickX"]
