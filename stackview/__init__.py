"""Stacked 3D viewer and editor for UI element dumps."""

__version__ = "0.4.0"
