"""Vertical lag, filament merging and barline shape classification."""

from .classifier import BarlineShapeClassifier
from .filaments import RunsFilamentFactory
from .runs import Section, VerticalLag, VerticalRun, binarize

__all__ = [
    "BarlineShapeClassifier",
    "RunsFilamentFactory",
    "Section",
    "VerticalLag",
    "VerticalRun",
    "binarize",
]
