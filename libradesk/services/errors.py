from __future__ import annotations


class LibraryError(Exception):
    """Base class for failures reported to API callers as ``{"error": message}``."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(LibraryError):
    status_code = 400


class NotFound(LibraryError):
    status_code = 404


class NotAvailable(LibraryError):
    status_code = 400


class InactiveMember(LibraryError):
    status_code = 400


class AlreadyReturned(LibraryError):
    status_code = 409
