class TrackerError(Exception):
    """Base class for errors raised by the finance tracker."""


class StorageError(TrackerError):
    """The transaction store could not complete an operation."""
