"""
utils.py

Small helpers shared by the spatial modules: array coercion with shape
checks, a KD-tree builder and an exception logger that never raises.

The public helpers:
- `safe_log_exception(msg, exc, **ctx)` : logs exceptions robustly
- `safe_build_kdtree(points, name='KDTree')` : returns a cKDTree or None
- `as_float_array(a, name)` : float ndarray, never a view on caller data
- `require_same_shape(**arrays)` : raises ShapeMismatchError on disagreement

"""

from typing import Any, Optional
import sys
import logging
import numpy as np

from climgrid.spatial.errors import ShapeMismatchError

logger = logging.getLogger(__name__)


def safe_log_exception(msg: str, exc: Exception, **ctx: Any) -> None:
    """Log an exception robustly.

    Attempts to call `logger.exception`. If logging fails for any reason,
    falls back to writing a compact message to `sys.stderr`.
    """
    try:
        if ctx:
            ctx_s = ' | '.join(f"{k}={v!r}" for k, v in ctx.items())
            logger.exception('%s | %s | %s', msg, exc, ctx_s)
        else:
            logger.exception('%s | %s', msg, exc)
    except Exception:
        # Minimal fallback; a broken handler must not mask the original error.
        try:
            sys.stderr.write(f'LOGGING FAILURE: {msg} {exc}\n')
        except Exception:
            pass


def safe_build_kdtree(points: Any, name: str = 'KDTree') -> Optional[object]:
    """Build a `scipy.spatial.cKDTree` for ``points``.

    Returns the tree instance or ``None`` for empty or missing input.
    Anything else that goes wrong is logged and re-raised.
    """
    if points is None:
        logger.debug('%s: points is None, not building tree', name)
        return None
    pts = np.asarray(points, dtype=float)
    if pts.size == 0:
        logger.debug('%s: points empty, not building tree', name)
        return None
    if pts.ndim == 1:
        pts = pts[:, None]
    try:
        from scipy.spatial import cKDTree

        return cKDTree(pts)
    except Exception:
        logger.exception('%s: failed to build cKDTree for %d points', name, pts.shape[0])
        raise


def as_float_array(a: Any, name: str = 'array') -> np.ndarray:
    """Return ``a`` as a new float64 ndarray.

    Integer and boolean input is promoted; masked arrays have their masked
    entries replaced with NaN.
    """
    if isinstance(a, np.ma.MaskedArray):
        return np.ma.filled(a.astype(float), np.nan)
    try:
        return np.array(a, dtype=float)
    except (TypeError, ValueError) as e:
        raise TypeError(f'{name} must be numeric array-like, got {type(a).__name__}') from e


def require_same_shape(**arrays: np.ndarray) -> tuple:
    """Check that every keyword array has the same shape; return that shape."""
    shapes = {k: np.shape(v) for k, v in arrays.items()}
    distinct = set(shapes.values())
    if len(distinct) > 1:
        detail = ', '.join(f'{k}{s}' for k, s in shapes.items())
        raise ShapeMismatchError(f'shapes must match: {detail}')
    return distinct.pop() if distinct else ()
