import io


class PackError(Exception):
    """Base class for errors raised by packmule."""


class FormatError(PackError):
    """The data is not a valid pack file, or part of it is corrupted."""


class BoundsError(PackError, ValueError):
    """A name, position or size falls outside of the range allowed for it."""


class UnsupportedOperationError(PackError, io.UnsupportedOperation):
    """The operation is never supported by the object it was called on."""
