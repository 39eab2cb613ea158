"""Consistency of side abscissas across the staves of a system."""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .bars import Bar
from .geometry import HorizontalSide
from .selection import SideSelector

if TYPE_CHECKING:
    from .systems import SystemFrame

logger = logging.getLogger(__name__)


class SideStrategy(Enum):
    LONG = "long"
    SHORT = "short"
    LINE = "line"


class SideReconciler:
    """Align one side of every staff in a system.

    All staves of a system must exhibit consistent sides, otherwise later
    dewarping of the page strongly degrades the image.
    """

    def __init__(self, selector: SideSelector, global_slope: float) -> None:
        self.selector = selector
        self.params = selector.params
        self.global_slope = global_slope

    def classify(self, system: "SystemFrame", side: HorizontalSide) -> SideStrategy:
        longs = 0
        shorts = 0
        for staff in system.staves:
            bar = staff.bar(side)
            if bar is None:
                continue
            if self.selector.is_long(bar.reference_stick):
                longs += 1
            else:
                shorts += 1

        staff_count = len(system.staves)
        if longs > 0:
            logger.debug("System#%d %s long bars: %d/%d", system.id, side.name, longs, staff_count)
            return SideStrategy.LONG

        logger.debug("System#%d %s short bars: %d/%d", system.id, side.name, shorts, staff_count)
        if shorts == staff_count:
            return SideStrategy.SHORT
        return SideStrategy.LINE

    def adjust_system_sides(self, system: "SystemFrame") -> None:
        for side in HorizontalSide:
            strategy = self.classify(system, side)
            if strategy is SideStrategy.LONG:
                self.adjust_long_system_side(system, side)
            elif strategy is SideStrategy.SHORT:
                self.adjust_short_system_side(system, side)
            else:
                self.adjust_line_system_side(system, side)

    def adjust_long_system_side(self, system: "SystemFrame", side: HorizontalSide) -> None:
        """Align staves without long bar on the staves that have one.

        A staff between two long-barred staves is interpolated, otherwise it is
        extrapolated from the single neighbour using the global slope. A nearby
        stick of the staff is then preferred to the theoretical abscissa.
        """

        staves = system.staves
        prev_long = None

        for idx, staff in enumerate(staves):
            if self.selector.staff_has_long_bar(staff, side):
                prev_long = staff
                continue

            next_long = next(
                (s for s in staves[idx + 1 :] if self.selector.staff_has_long_bar(s, side)),
                None,
            )

            staff_y = staff.mid_ordinate(side)

            if prev_long is not None and next_long is not None:
                prev = prev_long.intersection(prev_long.bar(side).reference_stick)
                nxt = next_long.intersection(next_long.bar(side).reference_stick)
                staff_x = int(
                    round(prev.x + (staff_y - prev.y) * (nxt.x - prev.x) / (nxt.y - prev.y))
                )
            else:
                neighbor = prev_long if prev_long is not None else next_long
                pt = neighbor.intersection(neighbor.bar(side).reference_stick)
                staff_x = pt.x - int(round((staff_y - pt.y) * self.global_slope))

            sx = self.selector.best_stick(staff, staff_x, self.params.max_side_dx)
            if sx is not None:
                staff.set_bar(side, Bar(sx.stick))
                staff.set_abscissa(side, sx.x)
            else:
                staff.set_bar(side, None)
                staff.set_abscissa(side, staff_x)

            logger.debug("%s adjusted %r", side.name, staff)

    def adjust_line_system_side(self, system: "SystemFrame", side: HorizontalSide) -> None:
        """Force all staves on the pseudo-vertical line ``x = b - y * slope``."""

        staves = system.staves
        deltas = 0.0
        for staff in staves:
            x = staff.lines_end(side)
            y = staff.mid_ordinate(side)
            deltas += x + y * self.global_slope

        b = deltas / len(staves)

        for staff in staves:
            y = staff.mid_ordinate(side)
            x = int(round(b - y * self.global_slope))
            staff.set_bar(side, None)
            staff.set_abscissa(side, x)

    def adjust_short_system_side(self, system: "SystemFrame", side: HorizontalSide) -> None:
        """Short bars only: kept as they are unless short sides are enforced.

        When enforced, a bar lying inside the staff beyond the lines end by more
        than the allowed extension is dropped in favour of the lines end.
        """

        if not self.params.enforce_short_sides:
            return

        for staff in system.staves:
            bar = staff.bar(side)
            if bar is None:
                continue

            lines_x = staff.lines_end(side)
            bar_x = staff.intersection(bar.reference_stick).x
            if side.direction * (bar_x - lines_x) > self.params.max_line_extension:
                staff.set_bar(side, None)
                staff.set_abscissa(side, lines_x)
                logger.debug("%s extended %r", side.name, staff)


__all__ = ["SideReconciler", "SideStrategy"]
