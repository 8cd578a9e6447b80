"""Nearest-sample lookups on vectors and 2-D coordinate grids.

`nearest_1d` finds the element of a vector closest to a value, `nearest_2d`
the cell of an X/Y grid closest to a point (optionally restricted by a
mask). Both accept a scalar query or an array of queries and always break
ties toward the lowest index, so results do not depend on how the search
is carried out.
"""
from typing import Any, Optional, Tuple
import logging

import numpy as np

from climgrid.spatial.config import KDTREE_MIN_CELLS
from climgrid.spatial.errors import NoValidCellError, ShapeMismatchError
from climgrid.spatial.utils import as_float_array, require_same_shape, safe_build_kdtree

logger = logging.getLogger(__name__)

# queries x samples evaluated per block in the brute-force paths
_BLOCK_ELEMENTS = 2_000_000


def _as_vector(x: Any, name: str) -> np.ndarray:
    a = as_float_array(x, name)
    if a.ndim == 2 and 1 in a.shape:
        a = a.ravel()
    if a.ndim != 1:
        raise ShapeMismatchError(f'{name} must be a vector, got shape {a.shape}')
    return a


def _query_blocks(n_queries: int, n_samples: int):
    step = max(1, _BLOCK_ELEMENTS // max(1, n_samples))
    for start in range(0, n_queries, step):
        yield slice(start, min(start + step, n_queries))


def _check_finite_queries(*queries: np.ndarray) -> None:
    for q in queries:
        if not np.all(np.isfinite(q)):
            raise ValueError('query coordinates must be finite')


def nearest_1d(x, query) -> Tuple[Any, Any]:
    """Index of the element of ``x`` closest to ``query``.

    Parameters:
    - x: 1-D array-like of sample values. NaN entries are never chosen.
    - query: scalar or array of values to look up.

    Returns: (index, distance) where ``distance = abs(x[index] - query)``.
    Scalars for a scalar query, otherwise arrays shaped like ``query``.
    When two samples are equally close the lower index wins.
    """
    xa = _as_vector(x, 'x')
    valid = np.isfinite(xa)
    if not valid.any():
        raise NoValidCellError('x has no finite values to search')

    q = as_float_array(query, 'query')
    _check_finite_queries(q)
    qf = q.ravel()

    idx = np.empty(qf.size, dtype=np.int64)
    dist = np.empty(qf.size, dtype=float)
    for blk in _query_blocks(qf.size, xa.size):
        d = np.abs(xa[None, :] - qf[blk, None])
        d[:, ~valid] = np.inf
        # argmin returns the first minimum, which is the lower index on ties
        best = np.argmin(d, axis=1)
        idx[blk] = best
        dist[blk] = d[np.arange(best.size), best]

    if q.ndim == 0:
        return int(idx[0]), float(dist[0])
    return idx.reshape(q.shape), dist.reshape(q.shape)


def nearest_2d(X, Y, query_x, query_y, mask: Optional[Any] = None,
               kdtree_min_cells: int = KDTREE_MIN_CELLS) -> Tuple[Any, Any, Any]:
    """Row and column of the grid cell closest to (query_x, query_y).

    Parameters:
    - X, Y: 2-D coordinate grids of identical shape. Either may hold
      longitudes or latitudes; the search is symmetric in the two.
    - query_x, query_y: scalars or equally shaped arrays.
    - mask: optional boolean grid, same shape as X. False cells are skipped.
    - kdtree_min_cells: number of valid cells from which a KD-tree is used
      instead of a full scan. Results are identical either way.

    Returns: (row, col, distance) with Euclidean ``distance`` in the units of
    X and Y. Ties go to the lowest row-major linear index. Cells with
    non-finite coordinates are never returned.

    Raises ShapeMismatchError if X, Y and mask disagree in shape and
    NoValidCellError if no cell is left to search.
    """
    Xa = as_float_array(X, 'X')
    Ya = as_float_array(Y, 'Y')
    arrays = {'X': Xa, 'Y': Ya}
    if mask is not None:
        arrays['mask'] = np.asarray(mask)
    shape = require_same_shape(**arrays)
    if len(shape) != 2:
        raise ShapeMismatchError(f'X and Y must be 2-D grids, got shape {shape}')

    valid = np.isfinite(Xa) & np.isfinite(Ya)
    if mask is not None:
        valid &= arrays['mask'].astype(bool)
    cells = np.flatnonzero(valid)
    if cells.size == 0:
        raise NoValidCellError('mask and non-finite coordinates exclude every grid cell')

    qx = as_float_array(query_x, 'query_x')
    qy = as_float_array(query_y, 'query_y')
    require_same_shape(query_x=qx, query_y=qy)
    _check_finite_queries(qx, qy)

    px = Xa.ravel()[cells]
    py = Ya.ravel()[cells]
    if cells.size >= kdtree_min_cells:
        logger.debug('nearest_2d: kd-tree over %d of %d cells', cells.size, Xa.size)
        pos, d2 = _nearest_kdtree(px, py, qx.ravel(), qy.ravel())
    else:
        pos, d2 = _nearest_scan(px, py, qx.ravel(), qy.ravel())

    rows, cols = np.unravel_index(cells[pos], shape)
    dist = np.sqrt(d2)
    if qx.ndim == 0:
        return int(rows[0]), int(cols[0]), float(dist[0])
    return rows.reshape(qx.shape), cols.reshape(qx.shape), dist.reshape(qx.shape)


def _nearest_scan(px, py, qx, qy):
    pos = np.empty(qx.size, dtype=np.int64)
    d2 = np.empty(qx.size, dtype=float)
    for blk in _query_blocks(qx.size, px.size):
        dd = (px[None, :] - qx[blk, None]) ** 2 + (py[None, :] - qy[blk, None]) ** 2
        best = np.argmin(dd, axis=1)
        pos[blk] = best
        d2[blk] = dd[np.arange(best.size), best]
    return pos, d2


def _nearest_kdtree(px, py, qx, qy):
    """KD-tree search with exact re-ranking of every candidate at the minimum distance."""
    tree = safe_build_kdtree(np.column_stack((px, py)), name='nearest_2d')
    q = np.column_stack((qx, qy))
    dmin, nn = tree.query(q, k=1)
    pos = np.empty(qx.size, dtype=np.int64)
    d2 = np.empty(qx.size, dtype=float)
    for k in range(qx.size):
        cand = np.asarray(tree.query_ball_point(q[k], r=dmin[k] * (1.0 + 1e-9)), dtype=np.int64)
        if cand.size == 0:
            cand = np.array([nn[k]], dtype=np.int64)
        cand.sort()
        dd = (px[cand] - qx[k]) ** 2 + (py[cand] - qy[k]) ** 2
        best = np.argmin(dd)
        pos[k] = cand[best]
        d2[k] = dd[best]
    return pos, d2


near1 = nearest_1d
near2 = nearest_2d
