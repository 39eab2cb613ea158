"""Configuration helpers shared by the grid retrieval steps."""

from .config import GridSettings, get_settings

__all__ = ["GridSettings", "get_settings"]
