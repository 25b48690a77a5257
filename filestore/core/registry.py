"""Session registry keyed by configuration fingerprint.

Each distinct backend configuration maps to exactly one live Filestore
session for the lifetime of the registry, so callers sharing a
configuration share its authentication. Sessions are never evicted,
refreshed or expired; a registry grows by one entry per distinct
configuration it has seen.
"""

import hashlib
import json
import threading

from filestore.config import SharePointConfig
from filestore.core.exceptions import ConfigurationError
from filestore.core.logging import get_logger
from filestore.core.sharepoint.adapter import SharePointFilestore
from filestore.core.storage import Filestore

logger = get_logger(__name__)

BackendConfig = SharePointConfig


def fingerprint(config: BackendConfig) -> str:
    """Compute a deterministic cache key for a backend configuration.

    The key is the SHA-256 of the backend type plus every connection field,
    serialized as canonical JSON. Identical fields give identical keys; a
    change to any field gives a different key.

    Raises:
        ConfigurationError: If config is not a supported backend config
    """
    if not isinstance(config, SharePointConfig):
        raise ConfigurationError(
            f"Unsupported backend configuration: {type(config).__name__}"
        )

    payload = {"backend": config.backend.value, **config.model_dump(mode="json")}
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SessionRegistry:
    """Maps configuration fingerprints to live Filestore sessions.

    The check-then-create sequence runs under a lock, so concurrent first
    use of the same configuration from several threads or tasks still
    builds a single session. Session construction does no network I/O.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Filestore] = {}
        self._lock = threading.Lock()

    def get_or_create(self, config: BackendConfig) -> Filestore:
        """Return the session for config, creating and registering it if new.

        An existing session is returned unchanged, without checking that
        it is still usable.

        Raises:
            ConfigurationError: If config is not a supported backend config
        """
        key = fingerprint(config)

        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = SharePointFilestore(config)
                self._sessions[key] = session
                logger.info(
                    "filestore_session_connected",
                    backend=config.backend.value,
                    site_url=config.site_url,
                    fingerprint=key[:12],
                )

        return session

    def get(self, key: str) -> Filestore | None:
        """Return the session registered under a fingerprint, if any."""
        with self._lock:
            return self._sessions.get(key)

    def __contains__(self, config: object) -> bool:
        if not isinstance(config, SharePointConfig):
            return False
        with self._lock:
            return fingerprint(config) in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# Process-wide default registry
_registry: SessionRegistry | None = None
_registry_lock = threading.Lock()


def get_session_registry() -> SessionRegistry:
    """Get the process-wide session registry singleton."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = SessionRegistry()
        return _registry


def reset_session_registry() -> None:
    """Reset the process-wide session registry singleton.

    Used primarily for testing to ensure clean state between tests.
    Existing sessions are dropped without being closed.
    """
    global _registry
    with _registry_lock:
        _registry = None


def get_filestore(config: BackendConfig) -> Filestore:
    """Get the Filestore session for config from the default registry."""
    return get_session_registry().get_or_create(config)
