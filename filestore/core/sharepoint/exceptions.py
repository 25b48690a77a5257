"""SharePoint-specific exception classes.

These exceptions map to common SharePoint REST API error scenarios
for file operations.
"""

from filestore.core.exceptions import BackendError


class SharePointError(BackendError):
    """Base exception for SharePoint operations.

    All SharePoint-related errors should inherit from this class
    to allow catching all SharePoint errors with a single except clause.
    """

    pass


class SharePointAuthenticationError(SharePointError):
    """Raised when SharePoint authentication fails.

    This can occur when:
    - Username or password is invalid
    - The account requires MFA (username/password flow cannot satisfy it)
    - The site rejects the bearer token (HTTP 401)
    """

    pass


class SharePointRateLimitError(SharePointError):
    """Raised when SharePoint throttles the request.

    SharePoint returns HTTP 429 with a Retry-After header.
    filestore does not retry; retry_after_seconds is exposed for callers.
    """

    def __init__(
        self,
        message: str,
        retry_after_seconds: int | None = None,
        status_code: int | None = 429,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after_seconds = retry_after_seconds


class SharePointNotFoundError(SharePointError):
    """Raised when a requested file or folder does not exist.

    This maps to HTTP 404 responses.
    """

    pass


class SharePointPermissionError(SharePointError):
    """Raised when the account lacks permission for the operation.

    This maps to HTTP 403 responses.
    Distinct from AuthenticationError which is about credential validity.
    """

    pass


class SharePointUploadError(SharePointError):
    """Raised when a file upload is rejected by SharePoint."""

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.filename = filename
