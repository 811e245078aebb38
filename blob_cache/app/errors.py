"""Errors raised by the storage layer.

The HTTP layer turns each of these into a status code; none of them outlive
the request that raised it.
"""


class StorageError(Exception):
    """Base class for storage failures."""


class InvalidHashError(StorageError):
    """The hash token is too short to address an object (400)."""


class BlobNotFoundError(StorageError):
    """No object exists at the resolved path (404)."""


class StorageIOError(StorageError):
    """A filesystem operation failed (500)."""


class StorageConfigError(StorageError):
    """A storage root is missing at startup."""
