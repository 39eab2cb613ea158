"""Staff line endings aligned on the final staff sides."""
from __future__ import annotations

import logging
from typing import Iterable

from .geometry import LEFT, RIGHT, HorizontalSide, Point
from .staves import Staff, StaffLine

logger = logging.getLogger(__name__)


def compute_line_ending(staff: Staff, line: StaffLine, side: HorizontalSide) -> Point:
    """Report the precise point where ``line`` should end on ``side``.

    The raw line end is projected along the staff ending slope up to the staff
    abscissa; when the side has a bar, the abscissa is taken on the bar stick.
    """

    slope = staff.ending_slope(side)
    bar = staff.bar(side)
    stick = None if bar is None else bar.reference_stick
    line_pt = line.end_point(side)
    staff_x = staff.abscissa(side)
    y = line_pt.y - (line_pt.x - staff_x) * slope
    x = staff_x if stick is None else stick.x_at(y)
    return Point.rounded(x, y)


def adjust_staff_lines(staves: Iterable[Staff], max_hole_gap: int) -> None:
    """Align the line endings of each staff, then fill the holes of its lines.

    A line whose computed ends do not leave any room between them keeps its
    raw ends.
    """

    for staff in staves:
        logger.debug("%r", staff)

        for line in staff.lines:
            left = compute_line_ending(staff, line, LEFT)
            right = compute_line_ending(staff, line, RIGHT)
            if left.x >= right.x:
                logger.warning(
                    "Staff#%d sides collapse (left:%d right:%d), keeping raw line ends",
                    staff.id,
                    left.x,
                    right.x,
                )
                continue
            line.set_ending_points(left, right)

        for line in staff.lines:
            line.fill_holes(staff.lines, max_hole_gap)


__all__ = ["adjust_staff_lines", "compute_line_ending"]
