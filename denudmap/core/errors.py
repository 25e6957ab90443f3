"""Exception hierarchy for denudmap."""


class DenudmapError(Exception):
    """Base class for errors raised by denudmap itself."""


class SplitError(DenudmapError):
    """Raised when a training/testing split does not partition the sample."""


class BandAlignmentError(DenudmapError):
    """Raised when composite band names do not match the training predictors."""

    def __init__(self, missing, extra=()):
        self.missing = list(missing)
        self.extra = list(extra)
        parts = []
        if self.missing:
            parts.append(f"missing bands: {', '.join(self.missing)}")
        if self.extra:
            parts.append(f"unexpected bands: {', '.join(self.extra)}")
        super().__init__("; ".join(parts) or "band mismatch")


class GridMismatchError(DenudmapError):
    """Raised when a resampled band is not on the reference grid."""


class ExportError(DenudmapError):
    """Raised when an Earth Engine export task fails or times out."""
