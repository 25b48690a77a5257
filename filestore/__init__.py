"""Backend-agnostic file storage adapters.

Typical use:

    from filestore import FileModel, SharePointConfig, get_filestore

    store = get_filestore(SharePointConfig(site_url=..., username=..., password=...))
    result = await store.download(FileModel(sources_id="/sites/docs/Shared Documents/a.txt"))
"""

from filestore.config import BackendType, SharePointConfig, Settings, get_settings
from filestore.core.exceptions import (
    BackendError,
    ConfigurationError,
    ContentReadError,
    FilestoreError,
    InvalidRequestError,
    TransportError,
)
from filestore.core.registry import (
    SessionRegistry,
    fingerprint,
    get_filestore,
    get_session_registry,
    reset_session_registry,
)
from filestore.core.storage import Filestore, OperationResult, OperationStatus
from filestore.schemas.file import FileModel

__all__ = [
    "BackendError",
    "BackendType",
    "ConfigurationError",
    "ContentReadError",
    "FileModel",
    "Filestore",
    "FilestoreError",
    "InvalidRequestError",
    "OperationResult",
    "OperationStatus",
    "SessionRegistry",
    "Settings",
    "SharePointConfig",
    "TransportError",
    "fingerprint",
    "get_filestore",
    "get_session_registry",
    "get_settings",
    "reset_session_registry",
]
