"""climgrid: spatial-indexing helpers for gridded climate data."""

__version__ = "0.1.0"
