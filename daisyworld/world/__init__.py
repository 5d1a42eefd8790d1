"""Spatial container: patches and the grid that owns them."""
