"""Geometric primitives shared by the grid retrieval steps."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class HorizontalSide(Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def direction(self) -> int:
        """Abscissa direction going from the page border towards the staff."""

        return 1 if self is HorizontalSide.LEFT else -1


LEFT = HorizontalSide.LEFT
RIGHT = HorizontalSide.RIGHT


@dataclass(frozen=True)
class Point:
    """Pixel location on the page."""

    x: int
    y: int

    @classmethod
    def rounded(cls, x: float, y: float) -> "Point":
        return cls(int(round(x)), int(round(y)))


@dataclass(frozen=True)
class VerticalLine:
    """Affine line expressed as ``x = slope * y + intercept``.

    Vertical sticks are much taller than wide, so the abscissa is modelled as a
    function of the ordinate to keep the fit well conditioned.
    """

    slope: float
    intercept: float

    def x_at(self, y: float) -> float:
        return self.slope * y + self.intercept

    @classmethod
    def fit(cls, points: np.ndarray) -> "VerticalLine":
        """Least squares fit of ``points`` given as an ``(N, 2)`` array of (x, y)."""

        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if points.shape[0] == 0:
            raise ValueError("Cannot fit a line without points")
        xs = points[:, 0]
        ys = points[:, 1]
        if np.ptp(ys) == 0:
            return cls(0.0, float(np.mean(xs)))
        slope, intercept = np.polyfit(ys, xs, 1)
        return cls(float(slope), float(intercept))


@dataclass(frozen=True)
class Scale:
    """Page scale, driven by the mean interline in pixels."""

    interline: int

    def __post_init__(self) -> None:
        if self.interline <= 0:
            raise ValueError("interline must be positive")

    def to_pixels(self, fraction: float) -> int:
        return int(round(self.interline * fraction))


__all__ = ["HorizontalSide", "LEFT", "Point", "RIGHT", "Scale", "VerticalLine"]
