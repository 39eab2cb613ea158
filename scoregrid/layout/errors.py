"""Errors raised while framing staves and systems."""
from __future__ import annotations


class GridError(RuntimeError):
    """Base error for the grid retrieval of a page."""


class AcquisitionError(GridError):
    """Raised when barline candidates cannot be retrieved from the page."""


class TopologyError(GridError):
    """Raised when systems cannot be partitioned consistently."""
