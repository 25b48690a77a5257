"""SharePoint backend for filestore.

This package implements the Filestore interface against the SharePoint
REST API (/_api) of a single site.

Modules:
    - exceptions: SharePoint-specific exception classes
    - auth: MSAL username/password token management
    - client: REST client wrapper (URL building, status mapping)
    - adapter: Filestore implementation / per-site session
"""

from filestore.core.sharepoint.adapter import SharePointFilestore
from filestore.core.sharepoint.auth import SharePointAuthService, site_scopes
from filestore.core.sharepoint.client import SharePointClient, escape_path
from filestore.core.sharepoint.exceptions import (
    SharePointAuthenticationError,
    SharePointError,
    SharePointNotFoundError,
    SharePointPermissionError,
    SharePointRateLimitError,
    SharePointUploadError,
)

__all__ = [
    # Exceptions
    "SharePointError",
    "SharePointAuthenticationError",
    "SharePointRateLimitError",
    "SharePointNotFoundError",
    "SharePointPermissionError",
    "SharePointUploadError",
    # Auth
    "SharePointAuthService",
    "site_scopes",
    # Client
    "SharePointClient",
    "escape_path",
    # Adapter
    "SharePointFilestore",
]
