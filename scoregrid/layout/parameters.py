"""Scale-dependent parameters used while framing staves and systems."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.config import GridSettings, get_settings
from .geometry import LEFT, HorizontalSide, Scale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parameters:
    """Thresholds converted to pixels for a given page scale."""

    min_long_length: int
    max_distance_from_staff_side: int
    max_left_bar_pack_width: int
    max_right_bar_pack_width: int
    max_bar_offset: int
    max_side_dx: int
    max_line_extension: int
    max_line_hole_gap: int
    max_bar_coord_gap: int
    max_bar_pos_gap: int
    max_topology_iterations: int = 32
    enforce_short_sides: bool = False

    def max_pack_width(self, side: HorizontalSide) -> int:
        return self.max_left_bar_pack_width if side is LEFT else self.max_right_bar_pack_width

    @classmethod
    def from_scale(cls, scale: Scale, settings: GridSettings | None = None) -> "Parameters":
        settings = settings or get_settings()
        params = cls(
            min_long_length=scale.to_pixels(settings.min_long_length),
            max_distance_from_staff_side=scale.to_pixels(settings.max_distance_from_staff_side),
            max_left_bar_pack_width=scale.to_pixels(settings.max_left_bar_pack_width),
            max_right_bar_pack_width=scale.to_pixels(settings.max_right_bar_pack_width),
            max_bar_offset=scale.to_pixels(settings.max_bar_offset),
            max_side_dx=scale.to_pixels(settings.max_side_dx),
            max_line_extension=scale.to_pixels(settings.max_line_extension),
            max_line_hole_gap=scale.to_pixels(settings.max_line_hole_gap),
            max_bar_coord_gap=scale.to_pixels(settings.max_bar_coord_gap),
            max_bar_pos_gap=scale.to_pixels(settings.max_bar_pos_gap),
            max_topology_iterations=settings.max_topology_iterations,
            enforce_short_sides=settings.enforce_short_sides,
        )
        logger.debug("Grid parameters for interline %d: %s", scale.interline, params)
        return params


__all__ = ["Parameters"]
