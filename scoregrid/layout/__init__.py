"""Barline-driven framing of staves and gathering of staves into systems."""

from .acquisition import FilamentSource, ShapeClassifier, acquire_candidates
from .bars import Bar, StickX
from .endings import adjust_staff_lines, compute_line_ending
from .errors import AcquisitionError, GridError, TopologyError
from .geometry import LEFT, RIGHT, HorizontalSide, Point, Scale, VerticalLine
from .parameters import Parameters
from .reconciliation import SideReconciler, SideStrategy
from .retriever import BarsRetriever
from .selection import SideSelector
from .staves import Staff, StaffLine, StaffManager
from .sticks import CandidateRegistry, Shape, VerticalCandidate
from .systems import (
    SystemFrame,
    TopologyDetector,
    check_partition,
    create_systems,
    retrieve_system_tops,
)

__all__ = [
    "AcquisitionError",
    "Bar",
    "BarsRetriever",
    "CandidateRegistry",
    "FilamentSource",
    "GridError",
    "HorizontalSide",
    "LEFT",
    "Parameters",
    "Point",
    "RIGHT",
    "Scale",
    "Shape",
    "ShapeClassifier",
    "SideReconciler",
    "SideSelector",
    "SideStrategy",
    "Staff",
    "StaffLine",
    "StaffManager",
    "StickX",
    "SystemFrame",
    "TopologyDetector",
    "TopologyError",
    "VerticalCandidate",
    "VerticalLine",
    "acquire_candidates",
    "adjust_staff_lines",
    "check_partition",
    "compute_line_ending",
    "create_systems",
    "retrieve_system_tops",
]
