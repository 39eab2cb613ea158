"""Vertical candidates (sticks) and the registry that owns them."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, Iterator, List

import numpy as np

from .geometry import Point, VerticalLine

logger = logging.getLogger(__name__)


class Shape(Enum):
    THICK_BARLINE = "thick_barline"
    THIN_BARLINE = "thin_barline"


class VerticalCandidate:
    """Elongated near-vertical filament built out of collinear runs.

    ``points`` holds one (x, y) center per covered row, sorted by ordinate.
    """

    def __init__(
        self,
        candidate_id: int,
        points: Iterable,
        *,
        thickness: float = 1.0,
        shape: Shape | None = None,
    ) -> None:
        array = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if array.shape[0] == 0:
            raise ValueError("A vertical candidate needs at least one point")
        self.id = candidate_id
        self.points = array[np.argsort(array[:, 1], kind="stable")]
        self.thickness = float(thickness)
        self.shape = shape
        self.line = VerticalLine.fit(self.points)

    @property
    def start_point(self) -> Point:
        y = self.points[0, 1]
        return Point.rounded(self.line.x_at(y), y)

    @property
    def stop_point(self) -> Point:
        y = self.points[-1, 1]
        return Point.rounded(self.line.x_at(y), y)

    @property
    def length(self) -> int:
        return int(round(self.points[-1, 1] - self.points[0, 1])) + 1

    @property
    def is_barline(self) -> bool:
        return self.shape in (Shape.THICK_BARLINE, Shape.THIN_BARLINE)

    def x_at(self, y: float) -> float:
        return self.line.x_at(y)

    def merged(self, other: "VerticalCandidate") -> "VerticalCandidate":
        """Return a new candidate covering both extents, keeping this id and shape."""

        total = self.length + other.length
        thickness = (self.thickness * self.length + other.thickness * other.length) / total
        return VerticalCandidate(
            self.id,
            np.concatenate((self.points, other.points)),
            thickness=thickness,
            shape=self.shape or other.shape,
        )

    def __repr__(self) -> str:
        start, stop = self.start_point, self.stop_point
        return (
            f"VerticalCandidate(id={self.id}, start=({start.x}, {start.y}), "
            f"stop=({stop.x}, {stop.y}), length={self.length})"
        )


class CandidateRegistry:
    """Working set of vertical candidates for one page.

    Absorption replaces the keeper with the merged candidate and removes the
    absorbed one; references to the absorbed candidate keep resolving to the
    survivor through :meth:`resolve`.
    """

    def __init__(self, candidates: Iterable[VerticalCandidate] = ()) -> None:
        self._candidates: Dict[int, VerticalCandidate] = {}
        self._aliases: Dict[int, int] = {}
        for candidate in candidates:
            if candidate.id in self._candidates:
                raise ValueError(f"Duplicate candidate id {candidate.id}")
            self._candidates[candidate.id] = candidate

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[VerticalCandidate]:
        return iter(list(self._candidates.values()))

    def __contains__(self, candidate: VerticalCandidate) -> bool:
        return self._candidates.get(candidate.id) is candidate

    def get(self, candidate_id: int) -> VerticalCandidate:
        while candidate_id in self._aliases:
            candidate_id = self._aliases[candidate_id]
        return self._candidates[candidate_id]

    def resolve(self, candidate: VerticalCandidate) -> VerticalCandidate:
        return self.get(candidate.id)

    def by_decreasing_length(self) -> List[VerticalCandidate]:
        return sorted(self._candidates.values(), key=lambda c: c.length, reverse=True)

    def absorb(self, keeper: VerticalCandidate, absorbed: VerticalCandidate) -> VerticalCandidate:
        keeper = self.resolve(keeper)
        absorbed = self.resolve(absorbed)
        if keeper is absorbed:
            return keeper

        merged = keeper.merged(absorbed)
        self._candidates[keeper.id] = merged
        del self._candidates[absorbed.id]
        self._aliases[absorbed.id] = keeper.id
        logger.debug("F%d absorbed into F%d", absorbed.id, keeper.id)
        return merged


__all__ = ["CandidateRegistry", "Shape", "VerticalCandidate"]
