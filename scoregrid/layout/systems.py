"""Gathering of staves into systems via connecting barlines."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .bars import StickX
from .errors import TopologyError
from .geometry import LEFT
from .parameters import Parameters
from .selection import SideSelector
from .staves import Staff, StaffManager
from .sticks import CandidateRegistry

logger = logging.getLogger(__name__)


@dataclass
class SystemFrame:
    """Contiguous sequence of staves played together."""

    id: int
    staves: List[Staff] = field(default_factory=list)

    @property
    def first_staff(self) -> Staff:
        return self.staves[0]

    @property
    def last_staff(self) -> Staff:
        return self.staves[-1]

    def __str__(self) -> str:
        ids = ",".join(str(staff.id) for staff in self.staves)
        return f"System#{self.id} staves:[{ids}]"


def retrieve_system_tops(
    manager: StaffManager,
    registry: CandidateRegistry,
) -> Tuple[List[int], Dict[int, List[StickX]]]:
    """Retrieve, for each staff, the index of the staff that starts its system.

    Longer sticks are processed first. A staff crossed by no stick is its own
    system top. The placements of every stick on each crossed staff are
    returned as well, keyed by staff id.
    """

    tops: List[int | None] = [None] * len(manager)
    placements: Dict[int, List[StickX]] = {staff.id: [] for staff in manager}

    for stick in registry.by_decreasing_length():
        top_staff = manager.get_staff_at(stick.start_point)
        bot_staff = manager.get_staff_at(stick.stop_point)
        if top_staff is None or bot_staff is None:
            continue

        top = manager.index_of(top_staff)
        bot = manager.index_of(bot_staff)
        if top > bot:
            logger.warning("Bar#%d spans no staff (top:%d bot:%d)", stick.id, top_staff.id, bot_staff.id)
            continue

        logger.debug("Bar#%d top:%d bot:%d", stick.id, top_staff.id, bot_staff.id)

        for i in range(top, bot + 1):
            staff = manager.get_staff(i)
            inter = staff.intersection(stick)
            placements[staff.id].append(StickX(inter.x, stick))

            if tops[i] is None or top < tops[i]:
                tops[i] = top

    resolved = [idx if top is None else top for idx, top in enumerate(tops)]
    logger.debug("top indices: %s", resolved)
    return resolved, placements


def create_systems(manager: StaffManager, tops: Sequence[int]) -> List[SystemFrame]:
    """Build system frames out of the system top of each staff."""

    systems: List[SystemFrame] = []
    staff_top = None
    current = None

    for staff, top in zip(manager, tops):
        if staff_top is None or staff_top < top:
            staff_top = top
            current = SystemFrame(len(systems) + 1, [staff])
            systems.append(current)
        else:
            current.staves.append(staff)

    return systems


def check_partition(manager: StaffManager, systems: Sequence[SystemFrame]) -> None:
    """Make sure systems cover all staves, in order and exactly once."""

    flattened = [staff.id for system in systems for staff in system.staves]
    expected = [staff.id for staff in manager]
    if flattened != expected:
        message = f"Systems staves {flattened} do not match page staves {expected}"
        logger.error("%s", message)
        raise TopologyError(message)


class TopologyDetector:
    """Detect systems, merging adjacent systems whose left bars are continuous.

    Systems and placements are rebuilt from scratch after each merge until no
    further merge occurs.
    """

    def __init__(self, manager: StaffManager, registry: CandidateRegistry, params: Parameters) -> None:
        self.manager = manager
        self.registry = registry
        self.params = params
        self.iterations = 0

    def detect(self) -> Tuple[List[SystemFrame], SideSelector]:
        for iteration in range(1, self.params.max_topology_iterations + 1):
            self.iterations = iteration
            tops, placements = retrieve_system_tops(self.manager, self.registry)
            systems = create_systems(self.manager, tops)
            selector = SideSelector(self.params, placements)

            # Left bar of each system
            for system in systems:
                selector.retrieve_system_side(system.staves, LEFT)

            if not self.systems_modified(systems):
                logger.info("%d system(s) found in %d iteration(s)", len(systems), iteration)
                return systems, selector

            logger.info("Systems modified, rebuilding...")

        message = f"Systems still modified after {self.params.max_topology_iterations} iterations"
        logger.error("%s", message)
        raise TopologyError(message)

    def systems_modified(self, systems: Sequence[SystemFrame]) -> bool:
        modified = False
        for prev_system, next_system in zip(systems, systems[1:]):
            if self.can_connect_systems(prev_system, next_system):
                modified = True
        return modified

    def can_connect_systems(self, prev_system: SystemFrame, next_system: SystemFrame) -> bool:
        """Merge the left bars of two systems when they look like one broken bar."""

        logger.debug(
            "Checking S#%d(%d) - S#%d(%d)",
            prev_system.id,
            len(prev_system.staves),
            next_system.id,
            len(next_system.staves),
        )

        prev_bar = prev_system.last_staff.bar(LEFT)
        next_bar = next_system.first_staff.bar(LEFT)
        if prev_bar is None or next_bar is None:
            return False

        for prev_stick in prev_bar.sticks:
            prev_stick = self.registry.resolve(prev_stick)
            prev_point = prev_stick.stop_point

            for next_stick in next_bar.sticks:
                next_stick = self.registry.resolve(next_stick)
                if next_stick is prev_stick:
                    continue
                next_point = next_stick.start_point

                dx = abs(next_point.x - prev_point.x)
                dy = abs(next_point.y - prev_point.y)
                logger.debug("F%d-F%d dx:%d dy:%d", prev_stick.id, next_stick.id, dx, dy)

                if dx <= self.params.max_bar_pos_gap and dy <= self.params.max_bar_coord_gap:
                    logger.info(
                        "Merging S#%d(%d) - S#%d(%d)",
                        prev_system.id,
                        len(prev_system.staves),
                        next_system.id,
                        len(next_system.staves),
                    )
                    self.registry.absorb(prev_stick, next_stick)
                    return True

        return False


__all__ = [
    "SystemFrame",
    "TopologyDetector",
    "check_partition",
    "create_systems",
    "retrieve_system_tops",
]
