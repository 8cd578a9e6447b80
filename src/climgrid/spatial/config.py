# -*- coding: utf-8 -*-

"""
spatial/config.py

Central constants for the climgrid spatial helpers. Functions in `bins`,
`nearest` and `outline` take explicit keyword arguments that default to the
values below, so a caller can override any of them per call without touching
module state.

Contents:
---------
1. KNOWN_GRID_ROWS:
   - Row counts of sinusoidal (Level-3 bin) grids that row-count inference
     will try, mapped to their nominal resolution. 180, 2160 and 4320 rows are
     the common ocean-colour products; the others are less common but still
     seen in the wild.

2. INFERENCE_MIN_FILL:
   - Fraction of the inferred grid's capacity that the largest bin index must
     reach before the guess is considered safe. Below this a
     GridInferenceWarning is emitted.

3. KDTREE_MIN_CELLS:
   - Number of valid grid cells from which `nearest_2d` builds a KD-tree
     instead of scanning every cell.

4. OUTLINE_DEFAULTS:
   - Buffer join style and arc resolution, and the relative tolerance used to
     drop collinear vertices along straight pixel edges.

Usage:
------
    from climgrid.spatial.config import KNOWN_GRID_ROWS, OUTLINE_DEFAULTS
"""

# ───────────────────────────────────────────────────────────────────────────────
# 1) SINUSOIDAL GRIDS
# ───────────────────────────────────────────────────────────────────────────────
KNOWN_GRID_ROWS = {
    18: '10 degree',            # textbook example grid, 412 bins
    180: '1 degree',            # ~111 km
    360: '30 minute',           # ~55 km
    1080: '10 minute',          # ~18.5 km
    2160: '5 minute',           # ~9.28 km
    4320: '2.5 minute',         # ~4.64 km
    8640: '1.25 minute',        # ~2.32 km
}

INFERENCE_MIN_FILL = 0.5        # max index / capacity below this -> warn

# ───────────────────────────────────────────────────────────────────────────────
# 2) NEAREST-POINT SEARCH
# ───────────────────────────────────────────────────────────────────────────────
KDTREE_MIN_CELLS = 4096         # valid cells; below this a full scan is cheaper

# ───────────────────────────────────────────────────────────────────────────────
# 3) MASK OUTLINES
# ───────────────────────────────────────────────────────────────────────────────
OUTLINE_DEFAULTS = {
    'join_style': 'round',      # buffer corner style: 'round', 'mitre' or 'bevel'
    'quad_segs': 8,             # segments per quarter circle on round joins
    'collinear_rtol': 1e-9,     # times the smallest cell size
}
