"""Typed failures raised by the traversal-to-tree pipeline."""


class ArborError(Exception):
    """Base class for every fatal arbor failure."""


class RootNotFoundError(ArborError):
    """Raised when the root directory cannot be canonicalized or read."""


class MissingRootError(ArborError):
    """Raised when the walk finished without ever producing the root entry."""

    def __init__(self, message: str = "Walk produced no root directory entry.") -> None:
        super().__init__(message)


class MissingParentError(ArborError):
    """Raised when an entry cannot be associated with its parent directory."""


class ConfigError(ArborError):
    """Raised when the configuration file or a configured value is invalid."""
