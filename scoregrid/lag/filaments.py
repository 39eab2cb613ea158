"""Merging of thin vertical sections into filaments."""
from __future__ import annotations

import logging
from typing import List

import numpy as np

from ..core.config import GridSettings
from ..layout.geometry import Scale
from ..layout.sticks import VerticalCandidate
from .runs import Section, VerticalLag

logger = logging.getLogger(__name__)


class _FilamentDraft:
    def __init__(self, section: Section) -> None:
        points, widths = section.row_centers()
        self.points = points
        self.widths = widths
        self.thickness = section.thickness

    @property
    def bottom(self) -> int:
        return int(self.points[-1, 1])

    @property
    def bottom_x(self) -> float:
        return float(self.points[-1, 0])

    def include(self, section: Section) -> None:
        points, widths = section.row_centers()
        self.points = np.vstack((self.points, points))
        self.widths = np.concatenate((self.widths, widths))
        self.thickness = max(self.thickness, section.thickness)


class RunsFilamentFactory:
    """Build vertical filaments out of the sections of a vertical lag."""

    def __init__(
        self,
        *,
        max_section_thickness: int,
        max_filament_thickness: int,
        max_coord_gap: int,
        max_length_ratio: float = 1.5,
    ) -> None:
        self.max_section_thickness = max_section_thickness
        self.max_filament_thickness = max_filament_thickness
        self.max_coord_gap = max_coord_gap
        self.max_length_ratio = max_length_ratio

    @classmethod
    def from_settings(cls, scale: Scale, settings: GridSettings) -> "RunsFilamentFactory":
        return cls(
            max_section_thickness=scale.to_pixels(settings.max_section_thickness),
            max_filament_thickness=scale.to_pixels(settings.max_filament_thickness),
            max_coord_gap=scale.to_pixels(settings.max_coord_gap),
            max_length_ratio=settings.max_length_ratio,
        )

    def retrieve_filaments(self, lag: VerticalLag) -> List[VerticalCandidate]:
        sections = [
            section
            for section in lag.build_sections(self.max_length_ratio)
            if section.thickness <= self.max_section_thickness
        ]
        sections.sort(key=lambda section: (section.top, section.x_min))

        drafts: List[_FilamentDraft] = []
        for section in sections:
            target = self._find_draft(drafts, section)
            if target is None:
                drafts.append(_FilamentDraft(section))
            else:
                target.include(section)

        filaments = []
        for index, draft in enumerate(drafts, start=1):
            thickness = float(np.mean(draft.widths))
            filaments.append(VerticalCandidate(index, draft.points, thickness=thickness))

        logger.debug("%d filaments out of %d sections", len(filaments), len(sections))
        return filaments

    def _find_draft(self, drafts: List[_FilamentDraft], section: Section) -> _FilamentDraft | None:
        """Closest draft ending just above ``section``, within gap and thickness limits."""

        points, _ = section.row_centers()
        top_x = float(points[0, 0])
        max_dx = max(1.0, self.max_filament_thickness / 2)

        best = None
        best_dx = None
        for draft in drafts:
            gap = section.top - draft.bottom - 1
            if gap < 0 or gap > self.max_coord_gap:
                continue
            if max(draft.thickness, section.thickness) > self.max_filament_thickness:
                continue
            dx = abs(top_x - draft.bottom_x)
            if dx > max_dx:
                continue
            if best_dx is None or dx < best_dx:
                best = draft
                best_dx = dx
        return best


__all__ = ["RunsFilamentFactory"]
