"""Exception types raised by the duplicate-detection core."""


class DupScanError(Exception):
    """Base class for all dupscan errors."""


class InputShapeError(DupScanError, ValueError):
    """The input is structurally invalid (not an ordered collection of field maps,
    negative byte size, out-of-range threshold)."""


class InvalidThresholdError(InputShapeError):
    """A similarity threshold outside the half-open interval (0, 1]."""

    def __init__(self, threshold):
        self.threshold = threshold
        super().__init__(f"threshold must be in (0, 1], got {threshold!r}")


class UnreachableIndexError(DupScanError):
    """The backing file index could not be read or written."""


class ClusteringCancelledError(DupScanError):
    """Raised when a cancellation signal is observed during clustering."""

    def __init__(self, seeds_completed: int):
        self.seeds_completed = seeds_completed
        super().__init__(f"Clustering cancelled after {seeds_completed} seeds")


class TableLoadError(DupScanError):
    """A table file could not be loaded (unsupported format or unreadable)."""
