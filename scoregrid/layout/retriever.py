"""Retrieval of vertical bars to frame staves and gather them into systems."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List

import numpy as np

from ..core.config import GridSettings, get_settings
from .acquisition import FilamentSource, ShapeClassifier, acquire_candidates
from .endings import adjust_staff_lines
from .errors import AcquisitionError
from .geometry import HorizontalSide, Scale
from .parameters import Parameters
from .reconciliation import SideReconciler
from .selection import SideSelector
from .staves import StaffManager
from .sticks import CandidateRegistry, VerticalCandidate
from .systems import SystemFrame, TopologyDetector, check_partition

if TYPE_CHECKING:
    from ..lag.runs import VerticalLag

logger = logging.getLogger(__name__)


class BarsRetriever:
    """Use the long vertical filaments to retrieve the barlines that limit staves.

    The retriever owns the staves of ``staff_manager`` for the duration of
    :meth:`build_info`: staff sides, bars and line endings are updated in place.
    """

    def __init__(
        self,
        staff_manager: StaffManager,
        scale: Scale,
        *,
        settings: GridSettings | None = None,
        filament_source: FilamentSource | None = None,
        classifier: ShapeClassifier | None = None,
    ) -> None:
        self.staff_manager = staff_manager
        self.scale = scale
        self.settings = settings or get_settings()
        self.params = Parameters.from_scale(scale, self.settings)

        if filament_source is None or classifier is None:
            from ..lag import BarlineShapeClassifier, RunsFilamentFactory

            filament_source = filament_source or RunsFilamentFactory.from_settings(scale, self.settings)
            classifier = classifier or BarlineShapeClassifier.from_settings(scale, self.settings)
        self.filament_source = filament_source
        self.classifier = classifier

        self.global_slope = 0.0
        self.registry = CandidateRegistry()
        self.systems: List[SystemFrame] = []
        self.selector: SideSelector | None = None

    def build_lag(self, image: np.ndarray) -> "VerticalLag":
        """Build the vertical lag of a page image, to be passed to :meth:`build_info`."""

        from ..lag import VerticalLag

        return VerticalLag.from_image(
            image,
            min_run_length=self.scale.to_pixels(self.settings.min_run_length),
        )

    def build_info(self, lag: "VerticalLag", global_slope: float) -> List[SystemFrame]:
        """Retrieve candidates from ``lag``, then systems and precise sides."""

        candidates = self.retrieve_bars(lag, global_slope)
        return self.build_frames(candidates, global_slope)

    def retrieve_bars(self, lag: "VerticalLag", global_slope: float) -> List[VerticalCandidate]:
        try:
            return acquire_candidates(lag, self.filament_source, self.classifier, global_slope)
        except Exception as exc:
            logger.exception("Cannot retrieve barline candidates")
            raise AcquisitionError(f"Barline candidates retrieval failed: {exc}") from exc

    def build_frames(
        self,
        candidates: Iterable[VerticalCandidate],
        global_slope: float,
    ) -> List[SystemFrame]:
        """Detect systems and adjust sides out of already classified candidates."""

        self.global_slope = global_slope
        self.registry = CandidateRegistry(candidates)

        # Detect systems of staves aggregated via barlines
        self.retrieve_systems()

        # Adjust precise sides for systems, staves & lines
        self.adjust_sides()
        return self.systems

    def retrieve_systems(self) -> List[SystemFrame]:
        detector = TopologyDetector(self.staff_manager, self.registry, self.params)
        self.systems, self.selector = detector.detect()
        check_partition(self.staff_manager, self.systems)
        return self.systems

    def adjust_sides(self) -> None:
        reconciler = SideReconciler(self.selector, self.global_slope)

        for system in self.systems:
            for side in HorizontalSide:
                self.selector.retrieve_system_side(system.staves, side)
            reconciler.adjust_system_sides(system)
            logger.info("%s", system)

        adjust_staff_lines(self.staff_manager, self.params.max_line_hole_gap)


__all__ = ["BarsRetriever"]
