"""MSAL token management for SharePoint REST authentication.

Acquires bearer tokens for a SharePoint site with the account's username
and password (resource owner password flow). MSAL keeps acquired tokens in
its in-memory TokenCache and refreshes them through acquire_token_silent.
"""

import threading
from typing import Any
from urllib.parse import urlsplit

import msal
import requests

from filestore.config import SharePointConfig
from filestore.core.exceptions import ConfigurationError, TransportError
from filestore.core.logging import get_logger
from filestore.core.sharepoint.exceptions import SharePointAuthenticationError

logger = get_logger(__name__)


def site_scopes(site_url: str) -> list[str]:
    """Return the token scope for a site (its origin plus /.default).

    Args:
        site_url: Full site URL, e.g. https://contoso.sharepoint.com/sites/docs

    Raises:
        ConfigurationError: If the URL has no scheme or host
    """
    parts = urlsplit(site_url)
    if not parts.scheme or not parts.netloc:
        raise ConfigurationError(f"Invalid SharePoint site URL: {site_url}")
    return [f"{parts.scheme}://{parts.netloc}/.default"]


class SharePointAuthService:
    """MSAL-based authentication for one SharePoint site and account.

    The MSAL application is created lazily on the first token request, so
    constructing the service never touches the network.

    Attributes:
        _config: Connection settings for the site
        _msal_app: MSAL PublicClientApplication instance
        _lock: Serializes token acquisition so only one login is in flight
    """

    def __init__(self, config: SharePointConfig) -> None:
        self._config = config
        self._msal_app: msal.PublicClientApplication | None = None
        self._lock = threading.Lock()

    @property
    def site_url(self) -> str:
        return self._config.site_url

    @property
    def config(self) -> SharePointConfig:
        return self._config

    def _create_msal_app(self) -> msal.PublicClientApplication:
        """Create the MSAL PublicClientApplication for this account."""
        logger.debug(
            "sharepoint_msal_app_creating",
            authority=self._config.authority,
            client_id=self._config.client_id[:8] + "...",
        )
        return msal.PublicClientApplication(
            client_id=self._config.client_id,
            authority=self._config.authority,
        )

    def get_token(self) -> str:
        """Acquire an access token for the configured site.

        Tries MSAL's token cache first, then logs in with the configured
        username and password. MSAL talks to the authority over requests,
        so network failures during discovery or login surface as
        TransportError.

        Returns:
            Access token string

        Raises:
            ConfigurationError: If the site URL is malformed
            SharePointAuthenticationError: If token acquisition fails
            TransportError: If the authority cannot be reached
        """
        scopes = site_scopes(self._config.site_url)

        with self._lock:
            try:
                result = self._acquire_token(scopes)
            except requests.exceptions.RequestException as e:
                logger.error(
                    "sharepoint_token_failed",
                    reason="network_error",
                    error_type=type(e).__name__,
                    authority=self._config.authority,
                )
                raise TransportError(
                    f"Unable to reach {self._config.authority}: {e}"
                ) from e
            except ValueError as e:
                # MSAL raises ValueError for malformed authority/config
                logger.error("sharepoint_token_failed", reason="invalid_config")
                raise SharePointAuthenticationError(
                    f"Failed to acquire token: {e}"
                ) from e

            return self._handle_auth_result(result)

    def _acquire_token(self, scopes: list[str]) -> dict[str, Any] | None:
        """Return a cached token result or log in. Caller holds the lock."""
        if self._msal_app is None:
            self._msal_app = self._create_msal_app()

        accounts = self._msal_app.get_accounts(username=self._config.username)
        if accounts:
            result = self._msal_app.acquire_token_silent(
                scopes=scopes,
                account=accounts[0],
            )
            if result and "access_token" in result:
                logger.debug(
                    "sharepoint_token_cached",
                    expires_in=result.get("expires_in"),
                )
                return result

        logger.debug("sharepoint_token_acquiring_new")
        return self._msal_app.acquire_token_by_username_password(
            username=self._config.username,
            password=self._config.password,
            scopes=scopes,
        )

    def _handle_auth_result(self, result: dict[str, Any] | None) -> str:
        """Process MSAL authentication result.

        Raises:
            SharePointAuthenticationError: If result is None or contains error
        """
        if result is None:
            logger.error("sharepoint_token_failed", reason="null_result")
            raise SharePointAuthenticationError(
                "Failed to acquire token: no result from MSAL"
            )

        if "error" in result:
            error_code = result.get("error", "unknown")
            error_description = result.get("error_description", "No description")

            logger.error(
                "sharepoint_token_failed",
                error_code=error_code,
                error_description=error_description[:100],
            )
            raise SharePointAuthenticationError(
                f"Failed to acquire token: {error_code} - {error_description}"
            )

        access_token = result.get("access_token")
        if not access_token:
            logger.error("sharepoint_token_failed", reason="missing_access_token")
            raise SharePointAuthenticationError(
                "Failed to acquire token: access_token not in response"
            )

        logger.info(
            "sharepoint_token_acquired",
            expires_in=result.get("expires_in"),
            token_type=result.get("token_type"),
        )

        return access_token
