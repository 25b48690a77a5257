"""Core filestore exception classes.

All errors raised by filestore inherit from FilestoreError, so callers can
catch every storage failure with a single except clause while still being
able to tell the failure categories apart.

Exception Hierarchy:
    FilestoreError (base)
    +-- TransportError (request could not be built or sent)
    +-- ContentReadError (content stream or response body unreadable)
    +-- BackendError (remote service reported a failure)
    |   +-- SharePointError (defined in core/sharepoint/exceptions.py)
    +-- ConfigurationError (missing/invalid configuration)
    +-- InvalidRequestError (FileModel lacks a field the operation needs)
"""


class FilestoreError(Exception):
    """Base exception for all filestore errors.

    Example:
        try:
            await store.upload(model)
        except FilestoreError as e:
            logger.error("upload_failed", error=str(e), exc_info=True)
            raise
    """

    pass


class TransportError(FilestoreError):
    """Raised when a request cannot be constructed or executed.

    This covers:
    - Malformed URLs
    - Connection refused / DNS failures
    - Timeouts waiting for the backend
    """

    pass


class ContentReadError(FilestoreError):
    """Raised when a byte stream cannot be fully read.

    Either the caller-supplied upload content or the response body
    returned by the backend.
    """

    pass


class BackendError(FilestoreError):
    """Base exception for failures reported by the remote backend.

    Backend-specific hierarchies (e.g. SharePointError) inherit from this
    so callers can handle remote failures without knowing the backend.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(FilestoreError):
    """Exception for missing or invalid configuration.

    Raised when connection settings are incomplete or when a backend
    type is requested that filestore does not provide.
    """

    pass


class InvalidRequestError(FilestoreError, ValueError):
    """Raised when a FileModel lacks a field the operation requires.

    Also a ValueError, since the caller passed an unusable argument.
    No request is sent.
    """

    pass
