"""Exception types raised by the spatial helpers.

Every error derives from `ClimgridError`, which is itself a `ValueError`
so callers that already guard numeric input with ``except ValueError`` keep
working.
"""


class ClimgridError(ValueError):
    """Base class for invalid-input errors raised by climgrid."""


class OutOfRangeError(ClimgridError):
    """Index, latitude or region number outside the valid range."""


class AmbiguousGridError(ClimgridError):
    """The number of sinusoidal-grid rows cannot be inferred from the indices."""


class ShapeMismatchError(ClimgridError):
    """Coordinate, query or mask arrays that must agree in shape do not."""


class NoValidCellError(ClimgridError):
    """Nothing is left to search once masked and non-finite cells are removed."""


class GridInferenceWarning(UserWarning):
    """Emitted when an inferred row count is a guess rather than a certainty."""
