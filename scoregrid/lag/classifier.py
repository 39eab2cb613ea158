"""Geometric check of filaments that look like barlines."""
from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from ..core.config import GridSettings
from ..layout.geometry import Scale
from ..layout.sticks import Shape, VerticalCandidate

logger = logging.getLogger(__name__)


class BarlineShapeClassifier:
    """Tag straight, long filaments aligned with the page slope as barlines.

    A barline follows ``x = b - y * slope``, so its dx/dy ratio should be
    close to ``-global_slope``. Filaments wider than ``min_thick_width`` are
    thick barlines, the others thin ones.
    """

    def __init__(
        self,
        *,
        min_length: int,
        min_thick_width: float,
        max_residual: float,
        max_slope_gap: float,
    ) -> None:
        self.min_length = min_length
        self.min_thick_width = min_thick_width
        self.max_residual = max_residual
        self.max_slope_gap = max_slope_gap

    @classmethod
    def from_settings(cls, scale: Scale, settings: GridSettings) -> "BarlineShapeClassifier":
        return cls(
            min_length=scale.to_pixels(settings.min_bar_length),
            min_thick_width=scale.interline * settings.min_thick_bar_width,
            max_residual=scale.interline * settings.max_bar_residual,
            max_slope_gap=settings.max_bar_slope_gap,
        )

    def shape_of(self, candidate: VerticalCandidate, global_slope: float) -> Shape | None:
        if candidate.length < self.min_length:
            return None

        if abs(candidate.line.slope + global_slope) > self.max_slope_gap:
            return None

        xs = candidate.points[:, 0]
        ys = candidate.points[:, 1]
        residual = float(np.mean(np.abs(xs - (candidate.line.slope * ys + candidate.line.intercept))))
        if residual > self.max_residual:
            return None

        if candidate.thickness >= self.min_thick_width:
            return Shape.THICK_BARLINE
        return Shape.THIN_BARLINE

    def classify(self, candidates: Iterable[VerticalCandidate], global_slope: float) -> None:
        count = 0
        for candidate in candidates:
            candidate.shape = self.shape_of(candidate, global_slope)
            if candidate.shape is not None:
                count += 1
        logger.debug("%d filament(s) tagged as barlines", count)


__all__ = ["BarlineShapeClassifier"]
