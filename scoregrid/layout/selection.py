"""Selection of the bar that limits each staff on a given side."""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from .bars import Bar, StickX
from .geometry import LEFT, HorizontalSide
from .parameters import Parameters
from .staves import Staff
from .sticks import VerticalCandidate

logger = logging.getLogger(__name__)


class SideSelector:
    """Pick staff side bars among the sticks placed on each staff.

    ``placements`` maps a staff id to the sticks crossing that staff, each
    with its crossing abscissa. They are sorted by abscissa on construction.
    """

    def __init__(self, params: Parameters, placements: Mapping[int, Sequence[StickX]]) -> None:
        self.params = params
        self.placements: Dict[int, List[StickX]] = {
            staff_id: sorted(sticks) for staff_id, sticks in placements.items()
        }

    def is_long(self, stick: VerticalCandidate) -> bool:
        return stick.length >= self.params.min_long_length

    def staff_has_long_bar(self, staff: Staff, side: HorizontalSide) -> bool:
        bar = staff.bar(side)
        return bar is not None and self.is_long(bar.reference_stick)

    def staff_sticks(self, staff: Staff) -> List[StickX]:
        return self.placements.get(staff.id, [])

    def best_stick(self, staff: Staff, x: int, max_dx: int) -> StickX | None:
        """Placement closest to ``x`` on this staff, if strictly within ``max_dx``."""

        best = None
        best_dx = None
        for sx in self.staff_sticks(staff):
            dx = abs(x - sx.x)
            if dx < max_dx and (best_dx is None or dx < best_dx):
                best = sx
                best_dx = dx
        return best

    def retrieve_staff_side(
        self,
        staff: Staff,
        side: HorizontalSide,
        take_all_sticks: bool,
    ) -> Bar | None:
        """Determine the bar, if any, on the given side of ``staff``.

        Sticks are browsed from the page border towards the staff until they
        lie beyond the maximum distance from the current staff side. The first
        eligible stick starts the bar, the following ones join it as a pack
        when close enough. The staff abscissa is updated to the accepted bar.
        """

        direction = side.direction
        sticks = self.staff_sticks(staff)
        ordered = sticks if direction > 0 else list(reversed(sticks))

        staff_x = staff.abscissa(side)
        x_break = staff_x + direction * self.params.max_distance_from_staff_side
        pack_width = self.params.max_pack_width(side)
        bar = None
        bar_x = None

        staff.set_bar(side, None)

        for sx in ordered:
            if direction * (x_break - sx.x) < 0:
                break

            if not (take_all_sticks or self.is_long(sx.stick)):
                continue

            if bar is None:
                bar = Bar(sx.stick)
                bar_x = sx.x
            elif direction * (sx.x - bar_x) <= pack_width:
                # Pack of bars
                if side is LEFT:
                    bar.append_stick(sx.stick)
                else:
                    bar.prepend_stick(sx.stick)

        if bar is not None:
            stick = bar.reference_stick
            bar_x = int(round(stick.x_at(staff.mid_ordinate(side))))

            if direction * (bar_x - staff_x) <= self.params.max_bar_offset:
                staff_x = bar_x
                staff.set_bar(side, bar)
            else:
                logger.debug(
                    "%s stick#%d discarded for staff#%d", side.name, stick.id, staff.id
                )
                bar = None
        else:
            logger.debug(
                "%s no %sbar for staff#%d among %s",
                side.name,
                "" if take_all_sticks else "long ",
                staff.id,
                [f"F{sx.stick.id}" for sx in sticks],
            )

        staff.set_abscissa(side, staff_x)
        return bar

    def retrieve_system_side(self, staves: Sequence[Staff], side: HorizontalSide) -> bool:
        """Select side bars for all staves of a system.

        A first pass considers long sticks only. Short sticks are considered in
        a second pass only when no staff of the system got a long bar. Returns
        whether a long bar was found.
        """

        for take_all_sticks in (False, True):
            has_long_bar = False
            for staff in staves:
                bar = self.retrieve_staff_side(staff, side, take_all_sticks)
                if bar is not None and self.is_long(bar.reference_stick):
                    has_long_bar = True

            if has_long_bar:
                return True

        return False


__all__ = ["SideSelector"]
