"""Exception and warning types shared across artist-catalog.

Recoverable problems (a bad feed row, a record that fails the schema) are
handled per record by the caller. Only ``StorageError`` is meant to abort a
whole run.
"""


class CatalogError(Exception):
    """Base class for all artist-catalog errors."""


class ParseError(CatalogError):
    """Raised when an incoming feed or record cannot be understood."""


class SchemaError(CatalogError):
    """Raised when the artist schema is missing or malformed."""


class StorageError(CatalogError):
    """Raised when the catalog directory cannot be read or written.

    ``committed`` counts the writes that already landed before the failure.
    """

    def __init__(self, message: str, committed: int = 0) -> None:
        self.committed = committed
        super().__init__(message)


class FileCollisionError(StorageError):
    """Raised when a new record would overwrite an existing catalog file."""


class IdentityCollisionWarning(UserWarning):
    """Two corpus records claim the same identity value."""


class AmbiguousMatchWarning(UserWarning):
    """One incoming record points at several different corpus records."""
