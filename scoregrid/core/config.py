"""Settings for the barline-driven grid retrieval and related helpers."""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GridSettings(BaseSettings):
    """Thresholds loaded from ``GRID_*`` environment variables.

    Unless stated otherwise, each value is a fraction of the interline scale
    and is converted to pixels by :meth:`scoregrid.layout.Parameters.from_scale`.
    """

    # Vertical lag and filaments
    max_length_ratio: float = 1.5
    min_run_length: float = 1.5
    max_section_thickness: float = 0.8
    max_filament_thickness: float = 0.8
    max_coord_gap: float = 0.5

    # Barline shape classification
    min_bar_length: float = 3.5
    min_thick_bar_width: float = 0.3
    max_bar_residual: float = 0.2
    max_bar_slope_gap: float = 0.05  # dx/dy ratio, not scaled

    # Bars and sides
    min_long_length: float = 8.0
    max_distance_from_staff_side: float = 4.0
    max_left_bar_pack_width: float = 1.5
    max_right_bar_pack_width: float = 0.5
    max_bar_offset: float = 4.0
    max_side_dx: float = 0.5
    max_line_extension: float = 0.5
    max_line_hole_gap: float = 1.0

    # Systems
    max_bar_coord_gap: float = 2.5
    max_bar_pos_gap: float = 0.2
    max_topology_iterations: int = 32
    enforce_short_sides: bool = False

    model_config = SettingsConfigDict(
        env_prefix="grid_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator(
        "min_run_length",
        "max_section_thickness",
        "max_filament_thickness",
        "max_coord_gap",
        "min_bar_length",
        "min_thick_bar_width",
        "max_bar_residual",
        "max_bar_slope_gap",
        "min_long_length",
        "max_distance_from_staff_side",
        "max_left_bar_pack_width",
        "max_right_bar_pack_width",
        "max_bar_offset",
        "max_side_dx",
        "max_line_extension",
        "max_line_hole_gap",
        "max_bar_coord_gap",
        "max_bar_pos_gap",
    )
    def ensure_positive(cls, value: float) -> float:
        """Reject null or negative thresholds."""
        if value <= 0:
            raise ValueError("Thresholds must be strictly positive")
        return value

    @field_validator("max_topology_iterations")
    def ensure_iterations(cls, value: int) -> int:
        if value < 1:
            raise ValueError("At least one topology iteration is required")
        return value

    @model_validator(mode="after")
    def ensure_length_ratio(self):
        """A junction ratio below 1 would forbid joining identical runs."""

        if self.max_length_ratio < 1.0:
            raise ValueError(
                f"max_length_ratio must be at least 1.0, got {self.max_length_ratio}"
            )
        return self


@lru_cache()
def get_settings() -> GridSettings:
    """Return a cached settings instance."""

    return GridSettings()
