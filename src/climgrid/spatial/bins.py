"""
bins.py

Sinusoidal (equal-area) bin grids as used by Level-3 binned ocean-colour
products. A grid of ``R`` rows splits latitude into bands of ``180/R``
degrees; row ``i`` (0 at the south pole) is centred on
``-90 + (i + 0.5) * 180/R`` and holds ``round(2*R*cos(lat_i))`` longitude
bins, so every bin covers roughly the same area. Bins are numbered from 1,
row by row, west to east, south to north.

Public functions:
- `get_grid(num_rows)` -> cached `SinusoidalGrid`
- `binind_to_latlon(bin_index, num_rows=None)` -> (lat, lon)
- `latlon_to_binind(lat, lon, num_rows)` -> bin_index
- `infer_num_rows(max_index)` -> num_rows (best effort, may warn)

"""
from functools import lru_cache
from typing import Iterable, Optional, Tuple
import logging
import warnings

import numpy as np

from climgrid.spatial.config import INFERENCE_MIN_FILL, KNOWN_GRID_ROWS
from climgrid.spatial.errors import (
    AmbiguousGridError,
    GridInferenceWarning,
    OutOfRangeError,
    ShapeMismatchError,
)
from climgrid.spatial.utils import as_float_array

logger = logging.getLogger(__name__)


class SinusoidalGrid:
    """Row table of a sinusoidal grid with ``num_rows`` latitude rows.

    Attributes are read-only numpy arrays indexed by 0-based row:
    - `row_lats`: centre latitude of each row (degrees)
    - `bins_per_row`: number of longitude bins in each row
    - `row_start`: 1-based index of the first bin in each row
    - `cumulative`: 1-based index of the last bin in each row

    Decoding and encoding only ever look rows up in these tables, so both
    directions agree on row boundaries by construction.
    """

    def __init__(self, num_rows: int):
        num_rows = _check_num_rows(num_rows)
        self.num_rows = num_rows
        self.lat_step = 180.0 / num_rows
        self.row_lats = -90.0 + (np.arange(num_rows) + 0.5) * self.lat_step
        # round half up, never fewer than one bin near the poles
        nbins = np.floor(2.0 * num_rows * np.cos(np.deg2rad(self.row_lats)) + 0.5)
        self.bins_per_row = np.maximum(nbins, 1).astype(np.int64)
        self.cumulative = np.cumsum(self.bins_per_row)
        self.row_start = self.cumulative - self.bins_per_row + 1
        self.total_bins = int(self.cumulative[-1])
        for arr in (self.row_lats, self.bins_per_row, self.cumulative, self.row_start):
            arr.setflags(write=False)
        logger.debug('sinusoidal grid: %d rows, %d bins', num_rows, self.total_bins)

    def __repr__(self) -> str:
        return f'SinusoidalGrid(num_rows={self.num_rows}, total_bins={self.total_bins})'

    def row_of(self, bin_index) -> np.ndarray:
        """0-based row holding each bin: first row whose cumulative count >= index."""
        idx = self._check_indices(bin_index)
        return np.searchsorted(self.cumulative, idx, side='left')

    def decode(self, bin_index) -> Tuple[np.ndarray, np.ndarray]:
        """Centre (lat, lon) of each bin; output keeps the input shape."""
        idx = self._check_indices(bin_index)
        rows = np.searchsorted(self.cumulative, idx, side='left')
        lat = self.row_lats[rows]
        lon = -180.0 + 360.0 * (idx - self.row_start[rows] + 0.5) / self.bins_per_row[rows]
        if np.ndim(bin_index) == 0:
            return float(lat), float(lon)
        return lat, lon

    def encode(self, lat, lon) -> np.ndarray:
        """Bin index containing each (lat, lon); longitudes wrap into [-180, 180)."""
        lat_a = as_float_array(lat, 'lat')
        lon_a = as_float_array(lon, 'lon')
        try:
            lat_a, lon_a = np.broadcast_arrays(lat_a, lon_a)
        except ValueError as e:
            raise ShapeMismatchError(f'lat{lat_a.shape} and lon{lon_a.shape} do not broadcast') from e
        if not np.all(np.isfinite(lat_a)) or np.any(np.abs(lat_a) > 90.0):
            raise OutOfRangeError('latitudes must be finite and within [-90, 90]')
        if not np.all(np.isfinite(lon_a)):
            raise OutOfRangeError('longitudes must be finite')

        rows = np.floor((lat_a + 90.0) / self.lat_step).astype(np.int64)
        rows = np.clip(rows, 0, self.num_rows - 1)
        nbins = self.bins_per_row[rows]
        frac = np.mod(lon_a + 180.0, 360.0) / 360.0
        cols = np.minimum(np.floor(frac * nbins).astype(np.int64), nbins - 1)
        out = self.row_start[rows] + cols
        if np.ndim(lat) == 0 and np.ndim(lon) == 0:
            return int(out)
        return out

    def bin_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """(lat, lon) of every bin in index order."""
        return self.decode(np.arange(1, self.total_bins + 1))

    def _check_indices(self, bin_index) -> np.ndarray:
        idx = np.asarray(bin_index)
        if idx.dtype == bool or not (np.issubdtype(idx.dtype, np.integer)
                                     or np.issubdtype(idx.dtype, np.floating)):
            raise TypeError(f'bin indices must be integers, got dtype {idx.dtype}')
        if np.issubdtype(idx.dtype, np.floating):
            if not np.all(np.isfinite(idx)) or np.any(idx != np.floor(idx)):
                raise OutOfRangeError('bin indices must be finite whole numbers')
        idx = idx.astype(np.int64)
        if idx.size and (idx.min() < 1 or idx.max() > self.total_bins):
            raise OutOfRangeError(
                f'bin indices must be within [1, {self.total_bins}] for a '
                f'{self.num_rows}-row grid (got {idx.min()}..{idx.max()})')
        return idx


def _check_num_rows(num_rows) -> int:
    if isinstance(num_rows, (bool, np.bool_)) or not float(num_rows).is_integer():
        raise ValueError(f'num_rows must be a positive even integer, got {num_rows!r}')
    n = int(num_rows)
    if n <= 0 or n % 2:
        raise ValueError(f'num_rows must be a positive even integer, got {num_rows!r}')
    return n


@lru_cache(maxsize=16)
def _grid_cached(num_rows: int) -> SinusoidalGrid:
    return SinusoidalGrid(num_rows)


def get_grid(num_rows) -> SinusoidalGrid:
    """Return the (cached) row table for ``num_rows`` rows."""
    return _grid_cached(_check_num_rows(num_rows))


def infer_num_rows(max_index, candidates: Optional[Iterable[int]] = None,
                   min_fill: float = INFERENCE_MIN_FILL) -> int:
    """Guess the row count of the grid a set of bin indices came from.

    Tries ``candidates`` (default: `KNOWN_GRID_ROWS`) from smallest to largest
    and returns the first whose capacity holds ``max_index``. Raises
    AmbiguousGridError when none does. When ``max_index`` fills less than
    ``min_fill`` of the chosen grid, a smaller unknown grid is just as
    plausible, so a GridInferenceWarning is issued.
    """
    max_index = int(max_index)
    if max_index < 1:
        raise OutOfRangeError(f'bin indices must be positive, got max {max_index}')
    rows_to_try = sorted(KNOWN_GRID_ROWS if candidates is None else candidates)
    for rows in rows_to_try:
        capacity = get_grid(rows).total_bins
        if max_index > capacity:
            continue
        fill = max_index / capacity
        logger.debug('inferred %d rows for max bin %d (fill %.3f)', rows, max_index, fill)
        if fill < min_fill:
            warnings.warn(
                f'guessed a {rows}-row grid for max bin index {max_index}, which fills only '
                f'{fill:.1%} of it; pass num_rows explicitly if the grid is known',
                GridInferenceWarning, stacklevel=3)
        return rows
    raise AmbiguousGridError(
        f'no candidate grid ({", ".join(str(r) for r in rows_to_try)} rows) '
        f'holds bin index {max_index}; pass num_rows explicitly')


def binind_to_latlon(bin_index, num_rows: Optional[int] = None,
                     candidates: Optional[Iterable[int]] = None):
    """Convert 1-based sinusoidal-grid bin indices to centre coordinates.

    Parameters:
    - bin_index: integer or integer array of any shape.
    - num_rows: number of latitude rows (positive, even). When omitted it is
      inferred from the largest index with `infer_num_rows`, which is only a
      best guess: pass it whenever the grid is known.
    - candidates: row counts tried by inference.

    Returns: (lat, lon) in degrees, same shape as ``bin_index``.
    """
    if num_rows is None:
        idx = np.asarray(bin_index)
        if idx.size == 0:
            raise AmbiguousGridError('cannot infer the grid from an empty set of bin indices')
        num_rows = infer_num_rows(np.max(idx), candidates=candidates)
    return get_grid(num_rows).decode(bin_index)


def latlon_to_binind(lat, lon, num_rows: int):
    """Index of the bin containing each (lat, lon) on a ``num_rows``-row grid."""
    return get_grid(num_rows).encode(lat, lon)


decode = binind_to_latlon
encode = latlon_to_binind
