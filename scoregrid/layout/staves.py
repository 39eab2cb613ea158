"""Staves and staff lines, mutated in place while framing the page."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Mapping, Sequence

import numpy as np

from .geometry import LEFT, RIGHT, HorizontalSide, Point

if TYPE_CHECKING:
    from .bars import Bar
    from .sticks import VerticalCandidate

logger = logging.getLogger(__name__)


class StaffLine:
    """Horizontal staff line traced as a polyline of (x, y) points."""

    def __init__(self, points: Iterable) -> None:
        array = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if array.shape[0] == 0:
            raise ValueError("A staff line needs at least one point")
        self.points = array[np.argsort(array[:, 0], kind="stable")]

    @property
    def left_point(self) -> Point:
        return Point.rounded(*self.points[0])

    @property
    def right_point(self) -> Point:
        return Point.rounded(*self.points[-1])

    def end_point(self, side: HorizontalSide) -> Point:
        return self.left_point if side is LEFT else self.right_point

    def slope_at(self, x: float) -> float:
        """Return dy/dx of the segment covering ``x`` (end segments beyond the line)."""

        xs = self.points[:, 0]
        ys = self.points[:, 1]
        if len(xs) < 2:
            return 0.0
        idx = int(np.searchsorted(xs, x, side="right")) - 1
        idx = int(np.clip(idx, 0, len(xs) - 2))
        dx = xs[idx + 1] - xs[idx]
        if dx == 0:
            return 0.0
        return float((ys[idx + 1] - ys[idx]) / dx)

    def y_at(self, x: float) -> float:
        xs = self.points[:, 0]
        ys = self.points[:, 1]
        if x < xs[0]:
            return float(ys[0] + (x - xs[0]) * self.slope_at(x))
        if x > xs[-1]:
            return float(ys[-1] + (x - xs[-1]) * self.slope_at(x))
        return float(np.interp(x, xs, ys))

    def set_ending_points(self, left: Point, right: Point) -> None:
        """Replace both line ends, dropping the points lying beyond them."""

        if left.x >= right.x:
            raise ValueError(f"Left ending {left} is not before right ending {right}")
        xs = self.points[:, 0]
        inner = self.points[(xs > left.x) & (xs < right.x)]
        self.points = np.vstack(([left.x, left.y], inner, [right.x, right.y]))

    def fill_holes(self, siblings: Sequence["StaffLine"], max_gap: int) -> int:
        """Fill gaps wider than ``max_gap`` using the closest sibling line as a guide.

        The sibling points found inside a gap are shifted by the vertical offset
        measured at both gap borders, linearly blended along the gap. Returns
        the number of points added.
        """

        added: List[np.ndarray] = []
        points = self.points
        for (x0, y0), (x1, y1) in zip(points[:-1], points[1:]):
            if x1 - x0 <= max_gap:
                continue
            reference = self._hole_reference(siblings, x0, y0, x1)
            if reference is None:
                continue
            ref_xs = reference.points[:, 0]
            inside = reference.points[(ref_xs > x0) & (ref_xs < x1)]
            d0 = y0 - reference.y_at(x0)
            d1 = y1 - reference.y_at(x1)
            ratios = (inside[:, 0] - x0) / (x1 - x0)
            filled = np.column_stack((inside[:, 0], inside[:, 1] + d0 + (d1 - d0) * ratios))
            added.append(filled)

        if not added:
            return 0
        merged = np.vstack([points, *added])
        self.points = merged[np.argsort(merged[:, 0], kind="stable")]
        count = sum(len(chunk) for chunk in added)
        logger.debug("Filled %d line points", count)
        return count

    def _hole_reference(
        self,
        siblings: Sequence["StaffLine"],
        x0: float,
        y0: float,
        x1: float,
    ) -> "StaffLine | None":
        best = None
        best_dy = None
        for sibling in siblings:
            if sibling is self:
                continue
            xs = sibling.points[:, 0]
            if not np.any((xs > x0) & (xs < x1)):
                continue
            dy = abs(sibling.y_at(x0) - y0)
            if best_dy is None or dy < best_dy:
                best = sibling
                best_dy = dy
        return best

    def __repr__(self) -> str:
        return f"StaffLine({self.left_point} -> {self.right_point}, points={len(self.points)})"


class Staff:
    """One physical staff with its per-side abscissa, bar and ending slope."""

    def __init__(
        self,
        staff_id: int,
        lines: Sequence[StaffLine],
        *,
        ending_slopes: Mapping[HorizontalSide, float] | None = None,
    ) -> None:
        if not lines:
            raise ValueError("A staff needs at least one line")
        self.id = staff_id
        self.lines: List[StaffLine] = sorted(lines, key=lambda line: line.y_at(line.points[0, 0]))
        self._abscissas: Dict[HorizontalSide, int] = {
            side: self.lines_end(side) for side in HorizontalSide
        }
        self._bars: Dict[HorizontalSide, Bar | None] = {side: None for side in HorizontalSide}
        if ending_slopes is None:
            ending_slopes = {side: self._default_ending_slope(side) for side in HorizontalSide}
        self._ending_slopes: Dict[HorizontalSide, float] = dict(ending_slopes)

    @property
    def mid_line(self) -> StaffLine:
        return self.lines[len(self.lines) // 2]

    @property
    def first_line(self) -> StaffLine:
        return self.lines[0]

    @property
    def last_line(self) -> StaffLine:
        return self.lines[-1]

    def abscissa(self, side: HorizontalSide) -> int:
        return self._abscissas[side]

    def set_abscissa(self, side: HorizontalSide, x: int) -> None:
        self._abscissas[side] = int(x)

    def bar(self, side: HorizontalSide) -> "Bar | None":
        return self._bars[side]

    def set_bar(self, side: HorizontalSide, bar: "Bar | None") -> None:
        self._bars[side] = bar

    def ending_slope(self, side: HorizontalSide) -> float:
        return self._ending_slopes[side]

    def lines_end(self, side: HorizontalSide) -> int:
        """Outermost line ending abscissa on the given side."""

        ends = [line.end_point(side).x for line in self.lines]
        return min(ends) if side is LEFT else max(ends)

    def mid_ordinate(self, side: HorizontalSide) -> int:
        return int(round(self.mid_line.y_at(self.abscissa(side))))

    def vertical_distance(self, point: Point) -> float:
        """Distance from ``point`` to the staff band, zero when inside it."""

        top = self.first_line.y_at(point.x)
        bottom = self.last_line.y_at(point.x)
        if top <= point.y <= bottom:
            return 0.0
        return min(abs(point.y - top), abs(point.y - bottom))

    def intersection(self, stick: "VerticalCandidate") -> Point:
        """Point where the stick line crosses the staff middle line."""

        line = self.mid_line
        y = float(np.mean(line.points[:, 1]))
        for _ in range(2):
            y = line.y_at(stick.x_at(y))
        return Point.rounded(stick.x_at(y), y)

    def _default_ending_slope(self, side: HorizontalSide) -> float:
        slopes = [line.slope_at(line.end_point(side).x) for line in self.lines]
        return float(np.mean(slopes))

    def __repr__(self) -> str:
        left_bar = self._bars[LEFT]
        right_bar = self._bars[RIGHT]
        return (
            f"Staff#{self.id} left={self._abscissas[LEFT]}"
            f"{'' if left_bar is None else ' ' + repr(left_bar)}"
            f" right={self._abscissas[RIGHT]}"
            f"{'' if right_bar is None else ' ' + repr(right_bar)}"
        )


class StaffManager:
    """Ordered arena of the page staves, indexed by id."""

    def __init__(self, staves: Iterable[Staff]) -> None:
        self._staves: List[Staff] = list(staves)
        ids = [staff.id for staff in self._staves]
        if ids != sorted(set(ids)):
            raise ValueError(f"Staff ids must be unique and in page order, got {ids}")
        self._indices: Dict[int, int] = {staff_id: idx for idx, staff_id in enumerate(ids)}

    def __len__(self) -> int:
        return len(self._staves)

    def __iter__(self) -> Iterator[Staff]:
        return iter(self._staves)

    @property
    def staves(self) -> List[Staff]:
        return list(self._staves)

    def get_staff(self, index: int) -> Staff:
        return self._staves[index]

    def get_by_id(self, staff_id: int) -> Staff:
        return self._staves[self._indices[staff_id]]

    def index_of(self, staff: Staff) -> int:
        return self._indices[staff.id]

    def get_range(self, first: Staff, last: Staff) -> List[Staff]:
        return self._staves[self.index_of(first) : self.index_of(last) + 1]

    def get_staff_at(self, point: Point) -> Staff | None:
        """Return the staff closest to ``point`` (first one on ties)."""

        best = None
        best_distance = None
        for staff in self._staves:
            distance = staff.vertical_distance(point)
            if best_distance is None or distance < best_distance:
                best = staff
                best_distance = distance
        return best


__all__ = ["Staff", "StaffLine", "StaffManager"]
