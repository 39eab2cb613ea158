"""Vertical runs of foreground pixels and their grouping into sections."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class VerticalRun:
    """Contiguous foreground pixels of one column, ``start`` and ``stop`` inclusive."""

    x: int
    start: int
    stop: int

    @property
    def length(self) -> int:
        return self.stop - self.start + 1

    def overlaps(self, other: "VerticalRun") -> bool:
        return self.start <= other.stop and other.start <= self.stop


@dataclass
class Section:
    """Runs of adjacent columns joined together."""

    runs: List[VerticalRun] = field(default_factory=list)

    def add(self, run: VerticalRun) -> None:
        self.runs.append(run)

    @property
    def x_min(self) -> int:
        return min(run.x for run in self.runs)

    @property
    def x_max(self) -> int:
        return max(run.x for run in self.runs)

    @property
    def thickness(self) -> int:
        return self.x_max - self.x_min + 1

    @property
    def top(self) -> int:
        return min(run.start for run in self.runs)

    @property
    def bottom(self) -> int:
        return max(run.stop for run in self.runs)

    def row_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return the (x, y) center of each covered row and the row widths."""

        xs = np.concatenate([np.full(run.length, run.x, dtype=np.float64) for run in self.runs])
        ys = np.concatenate([np.arange(run.start, run.stop + 1) for run in self.runs])
        rows, inverse = np.unique(ys, return_inverse=True)
        counts = np.bincount(inverse)
        centers = np.bincount(inverse, weights=xs) / counts
        return np.column_stack((centers, rows.astype(np.float64))), counts


def _ensure_grayscale(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image.copy()


def binarize(image: np.ndarray) -> np.ndarray:
    """Foreground (ink) as 255 on a 0 background, using Otsu thresholding."""

    gray = _ensure_grayscale(image)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)
    return binary


def _extract_runs(column: np.ndarray) -> List[Tuple[int, int]]:
    padded = np.concatenate(([0], (column > 0).astype(np.int8), [0]))
    edges = np.diff(padded)
    starts = np.flatnonzero(edges == 1)
    stops = np.flatnonzero(edges == -1) - 1
    return list(zip(starts.tolist(), stops.tolist()))


@dataclass
class VerticalLag:
    """Vertical runs of a binary page, grouped by column."""

    width: int
    height: int
    columns: Dict[int, List[VerticalRun]]

    @classmethod
    def from_binary(cls, binary: np.ndarray, *, min_run_length: int) -> "VerticalLag":
        """Build the lag from a mask where foreground pixels are non-zero.

        Runs shorter than ``min_run_length`` are removed beforehand with a
        vertical morphological opening.
        """

        if binary.ndim != 2:
            raise ValueError("Binary image must be a 2-D array")

        mask = (binary > 0).astype(np.uint8) * 255
        if min_run_length > 1:
            kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (1, int(min_run_length)))
            mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)

        height, width = mask.shape
        columns: Dict[int, List[VerticalRun]] = {}
        for x in np.flatnonzero(mask.any(axis=0)).tolist():
            columns[x] = [VerticalRun(x, start, stop) for start, stop in _extract_runs(mask[:, x])]
        return cls(width=width, height=height, columns=columns)

    @classmethod
    def from_image(cls, image: np.ndarray, *, min_run_length: int) -> "VerticalLag":
        return cls.from_binary(binarize(image), min_run_length=min_run_length)

    @property
    def runs(self) -> List[VerticalRun]:
        return [run for x in sorted(self.columns) for run in self.columns[x]]

    def build_sections(self, max_length_ratio: float) -> List[Section]:
        """Join runs of adjacent columns into sections.

        A run extends the section of the run it touches in the previous column
        only when the junction is one-to-one and the length ratio of both runs
        stays within ``max_length_ratio``.
        """

        sections: List[Section] = []
        previous: List[Tuple[VerticalRun, Section]] = []
        previous_x = None

        for x in sorted(self.columns):
            runs = self.columns[x]
            if previous_x is None or x != previous_x + 1:
                previous = []

            current: List[Tuple[VerticalRun, Section]] = []
            for run in runs:
                touching = [(prev_run, section) for prev_run, section in previous if prev_run.overlaps(run)]
                target = None
                if len(touching) == 1:
                    prev_run, section = touching[0]
                    successors = sum(1 for other in runs if other.overlaps(prev_run))
                    ratio = max(run.length, prev_run.length) / min(run.length, prev_run.length)
                    if successors == 1 and ratio <= max_length_ratio:
                        target = section

                if target is None:
                    target = Section()
                    sections.append(target)
                target.add(run)
                current.append((run, target))

            previous = current
            previous_x = x

        return sections


__all__ = ["Section", "VerticalLag", "VerticalRun", "binarize"]
