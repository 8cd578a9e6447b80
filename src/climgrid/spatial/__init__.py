"""Sinusoidal bin grids, nearest-point lookups and mask outlines.

    from climgrid.spatial import binind_to_latlon, nearest_2d, extract_outline
"""
from climgrid.spatial.errors import (
    AmbiguousGridError,
    ClimgridError,
    GridInferenceWarning,
    NoValidCellError,
    OutOfRangeError,
    ShapeMismatchError,
)
from climgrid.spatial.bins import (
    SinusoidalGrid,
    binind_to_latlon,
    get_grid,
    infer_num_rows,
    latlon_to_binind,
)
from climgrid.spatial.nearest import nearest_1d, nearest_2d
from climgrid.spatial.outline import (
    cell_corners,
    extract_outline,
    outline_polygons,
    outline_to_nan_separated,
    ring_area,
)

__all__ = [
    'AmbiguousGridError', 'ClimgridError', 'GridInferenceWarning', 'NoValidCellError',
    'OutOfRangeError', 'ShapeMismatchError',
    'SinusoidalGrid', 'binind_to_latlon', 'get_grid', 'infer_num_rows', 'latlon_to_binind',
    'nearest_1d', 'nearest_2d',
    'cell_corners', 'extract_outline', 'outline_polygons', 'outline_to_nan_separated', 'ring_area',
]
