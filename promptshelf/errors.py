"""Exceptions raised by the prompt library and its storage backends."""


class LibraryError(Exception):
    """Base class for library failures shown to the user."""


class ValidationError(LibraryError):
    """Raised when a field value is rejected (blank name, bad colour, ...)."""


class NotFoundError(LibraryError):
    """Raised when an id or name does not match exactly one record."""


class IntegrityError(LibraryError):
    """Raised when a change would leave a dangling reference."""


class StorageError(LibraryError):
    """Raised when the library cannot be read from or written to storage."""
