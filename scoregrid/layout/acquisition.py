"""Retrieval of the vertical barline candidates of a page."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Protocol, Sequence

from .sticks import VerticalCandidate

if TYPE_CHECKING:
    from ..lag.runs import VerticalLag

logger = logging.getLogger(__name__)


class FilamentSource(Protocol):
    def retrieve_filaments(self, lag: "VerticalLag") -> List[VerticalCandidate]:
        """Merge the lag sections into vertical filaments."""


class ShapeClassifier(Protocol):
    def classify(self, candidates: Sequence[VerticalCandidate], global_slope: float) -> None:
        """Set the shape of each candidate, ``None`` when not a barline."""


def acquire_candidates(
    lag: "VerticalLag",
    filament_source: FilamentSource,
    classifier: ShapeClassifier,
    global_slope: float,
) -> List[VerticalCandidate]:
    """Return the filaments of ``lag`` tagged as thick or thin barlines."""

    filaments = filament_source.retrieve_filaments(lag)
    classifier.classify(filaments, global_slope)
    bars = [filament for filament in filaments if filament.is_barline]
    logger.info("%d barline candidate(s) out of %d filament(s)", len(bars), len(filaments))
    return bars


__all__ = ["FilamentSource", "ShapeClassifier", "acquire_candidates"]
