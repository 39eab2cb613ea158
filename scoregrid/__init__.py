"""Barline-driven retrieval of systems and staff frames on scanned music pages."""
