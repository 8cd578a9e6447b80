"""
outline.py

Raster mask -> polygon outline. Every true pixel is turned into the
quadrilateral spanned by the midpoints to its neighbouring pixel centres,
the quadrilaterals are merged with a polygon union, and the resulting
regions are returned as closed rings (exterior counter-clockwise, holes
clockwise), largest region first.

Public functions:
- `cell_corners(x, y)` -> pixel corner grids
- `outline_polygons(x, y, mask, buffer=0, region=None)` -> list of shapely geometries
- `extract_outline(x, y, mask, buffer=0, region=None)` -> list of (N,2) rings
- `outline_to_nan_separated(rings)` -> (xs, ys) with NaN breaks
- `ring_area(ring)` -> signed area (positive when counter-clockwise)

"""
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np
import shapely
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.polygon import orient
from shapely.ops import unary_union

from climgrid.spatial.config import OUTLINE_DEFAULTS
from climgrid.spatial.errors import OutOfRangeError, ShapeMismatchError
from climgrid.spatial.utils import as_float_array, require_same_shape

logger = logging.getLogger(__name__)


def _center_grid(x_centers, y_centers, mask=None):
    """Stack pixel centres into an (R, K, 2) array; also return the mask as bool."""
    x = as_float_array(x_centers, 'x_centers')
    y = as_float_array(y_centers, 'y_centers')
    if x.ndim == 1 and y.ndim == 1:
        # vectors: columns run along x, rows along y
        x, y = np.meshgrid(x, y)
    arrays = {'x_centers': x, 'y_centers': y}
    if mask is not None:
        arrays['mask'] = np.asarray(mask)
    shape = require_same_shape(**arrays)
    if len(shape) != 2:
        raise ShapeMismatchError(f'pixel grids must be 2-D, got shape {shape}')
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise ValueError('pixel centre coordinates must be finite')
    m = arrays['mask'].astype(bool) if mask is not None else None
    return np.stack((x, y), axis=-1), m


def _axis_steps(P: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Step vectors along rows and columns, used to pad single-pixel axes."""
    nr, nc, _ = P.shape
    s0 = P[1, 0] - P[0, 0] if nr > 1 else None
    s1 = P[0, 1] - P[0, 0] if nc > 1 else None
    if s0 is None and s1 is None:
        return np.array([0.0, 1.0]), np.array([1.0, 0.0])
    # a lone row or column gets square pixels
    if s0 is None:
        s0 = np.array([-s1[1], s1[0]])
    if s1 is None:
        s1 = np.array([s0[1], -s0[0]])
    return s0, s1


def _corners(P: np.ndarray) -> np.ndarray:
    s0, s1 = _axis_steps(P)
    nr, nc, _ = P.shape
    if nc > 1:
        left, right = 2 * P[:, :1] - P[:, 1:2], 2 * P[:, -1:] - P[:, -2:-1]
    else:
        left, right = P - s1, P + s1
    P = np.concatenate((left, P, right), axis=1)
    if nr > 1:
        top, bottom = 2 * P[:1] - P[1:2], 2 * P[-1:] - P[-2:-1]
    else:
        top, bottom = P - s0, P + s0
    P = np.concatenate((top, P, bottom), axis=0)
    return 0.25 * (P[:-1, :-1] + P[1:, :-1] + P[:-1, 1:] + P[1:, 1:])


def cell_corners(x_centers, y_centers) -> Tuple[np.ndarray, np.ndarray]:
    """Pixel corner grids, shape (R+1, K+1), from pixel centres (R, K).

    Each interior corner is the mean of the four surrounding centres; the
    border is extrapolated linearly from the outermost two centres, so every
    pixel reaches halfway to each neighbour and edge pixels mirror their
    inward spacing.
    """
    P, _ = _center_grid(x_centers, y_centers)
    C = _corners(P)
    return C[..., 0], C[..., 1]


def _min_cell_size(C: np.ndarray) -> float:
    d0 = np.hypot(*np.moveaxis(np.diff(C, axis=0), -1, 0))
    d1 = np.hypot(*np.moveaxis(np.diff(C, axis=1), -1, 0))
    sizes = np.concatenate((d0.ravel(), d1.ravel()))
    sizes = sizes[sizes > 0]
    return float(sizes.min()) if sizes.size else 1.0


def _drop_collinear(coords, tol: float) -> np.ndarray:
    """Closed ring without vertices lying on the line through their neighbours."""
    xy = np.asarray(coords, dtype=float)[:-1]
    while xy.shape[0] > 3:
        prev = np.roll(xy, 1, axis=0)
        nxt = np.roll(xy, -1, axis=0)
        cross = ((xy[:, 0] - prev[:, 0]) * (nxt[:, 1] - prev[:, 1])
                 - (xy[:, 1] - prev[:, 1]) * (nxt[:, 0] - prev[:, 0]))
        span = np.hypot(nxt[:, 0] - prev[:, 0], nxt[:, 1] - prev[:, 1])
        keep = np.abs(cross) > tol * np.where(span == 0, 1.0, span)
        if keep.all():
            break
        xy = xy[keep]
    return np.vstack((xy, xy[:1]))


def _mask_regions(P: np.ndarray, m: np.ndarray, collinear_rtol: float) -> List[Polygon]:
    """Union of the true pixels as separate polygons, largest area first."""
    C = _corners(P)
    rows, cols = np.nonzero(m)
    quads = np.stack((C[rows, cols], C[rows, cols + 1], C[rows + 1, cols + 1],
                      C[rows + 1, cols], C[rows, cols]), axis=1)
    merged = unary_union(shapely.polygons(quads))
    parts = list(merged.geoms) if hasattr(merged, 'geoms') else [merged]
    tol = collinear_rtol * _min_cell_size(C)
    regions = []
    for part in parts:
        if not isinstance(part, Polygon) or part.is_empty:
            continue
        # the union leaves a vertex at every pixel corner along straight edges
        shell = _drop_collinear(part.exterior.coords, tol)
        holes = [_drop_collinear(h.coords, tol) for h in part.interiors]
        regions.append(Polygon(shell, holes))
    regions.sort(key=lambda p: (-p.area, p.bounds[0], p.bounds[1]))
    logger.debug('mask outline: %d true cells -> %d regions', rows.size, len(regions))
    return regions


def _orient(geom):
    if geom.is_empty:
        return Polygon()
    if isinstance(geom, Polygon):
        return orient(geom, sign=1.0)
    polys = [orient(g, sign=1.0) for g in getattr(geom, 'geoms', [])
             if isinstance(g, Polygon) and not g.is_empty]
    return MultiPolygon(polys) if polys else Polygon()


def outline_polygons(x_centers, y_centers, mask, buffer: float = 0.0,
                     region: Optional[int] = None,
                     join_style: str = OUTLINE_DEFAULTS['join_style'],
                     quad_segs: int = OUTLINE_DEFAULTS['quad_segs'],
                     collinear_rtol: float = OUTLINE_DEFAULTS['collinear_rtol']) -> list:
    """Polygon regions of ``mask``, one entry per region, largest first.

    Each entry is a Polygon, a MultiPolygon when erosion splits a region, or
    an empty Polygon when erosion removes it entirely. Exteriors are
    counter-clockwise and holes clockwise. Parameters as in `extract_outline`.
    """
    P, m = _center_grid(x_centers, y_centers, mask)
    if not m.any():
        return []
    regions = _mask_regions(P, m, collinear_rtol)
    if region is not None:
        if int(region) < 1 or int(region) > len(regions):
            raise OutOfRangeError(f'region must be within [1, {len(regions)}], got {region}')
        regions = [regions[int(region) - 1]]

    out = []
    for poly in regions:
        if buffer:
            # each region is offset on its own so the result keeps one slot per region
            poly = poly.buffer(float(buffer), quad_segs=quad_segs, join_style=join_style)
        out.append(_orient(poly))
    return out


def extract_outline(x_centers, y_centers, mask, buffer: float = 0.0,
                    region: Optional[int] = None,
                    join_style: str = OUTLINE_DEFAULTS['join_style'],
                    quad_segs: int = OUTLINE_DEFAULTS['quad_segs'],
                    collinear_rtol: float = OUTLINE_DEFAULTS['collinear_rtol']) -> List[np.ndarray]:
    """Outline of the true pixels of ``mask`` as closed rings.

    Parameters:
    - x_centers, y_centers: pixel-centre coordinates, either 2-D grids the
      shape of ``mask`` or 1-D vectors (x along columns, y along rows).
      Spacing may vary from pixel to pixel.
    - mask: 2-D boolean array.
    - buffer: planar offset in the units of x/y; positive grows each region,
      negative shrinks it.
    - region: 1-based rank by area; only that region's rings are returned.
    - join_style, quad_segs: corner handling of the buffer.
    - collinear_rtol: tolerance, relative to the smallest pixel, for dropping
      vertices that lie on a straight pixel edge.

    Returns a list of (N, 2) arrays, each closed (first vertex repeated
    last). Regions come largest first; each contributes its exterior ring
    (counter-clockwise) followed by its holes (clockwise). A region eroded
    away by a negative buffer contributes a single (0, 2) array.
    """
    geoms = outline_polygons(x_centers, y_centers, mask, buffer=buffer, region=region,
                             join_style=join_style, quad_segs=quad_segs,
                             collinear_rtol=collinear_rtol)
    rings = []
    for geom in geoms:
        if geom.is_empty:
            rings.append(np.empty((0, 2), dtype=float))
            continue
        for poly in getattr(geom, 'geoms', [geom]):
            rings.append(np.asarray(poly.exterior.coords, dtype=float))
            rings.extend(np.asarray(hole.coords, dtype=float) for hole in poly.interiors)
    return rings


def outline_to_nan_separated(rings: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
    """Concatenate rings into x and y vectors with a NaN between rings."""
    pieces = []
    for ring in rings:
        ring = np.asarray(ring, dtype=float).reshape(-1, 2)
        if ring.shape[0] == 0:
            continue
        if pieces:
            pieces.append(np.full((1, 2), np.nan))
        pieces.append(ring)
    if not pieces:
        return np.empty(0), np.empty(0)
    xy = np.vstack(pieces)
    return xy[:, 0], xy[:, 1]


def ring_area(ring) -> float:
    """Signed shoelace area of a ring; positive for counter-clockwise order."""
    xy = np.asarray(ring, dtype=float).reshape(-1, 2)
    if xy.shape[0] < 3:
        return 0.0
    x, y = xy[:, 0], xy[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


mask2outline = extract_outline
