"""SharePoint REST client for file operations.

Provides low-level HTTP operations against a site's /_api surface with:
- Lazy creation of one httpx.AsyncClient per site session
- Bearer token injection from SharePointAuthService
- Status code mapping to SharePoint exception classes
- OData-safe escaping of server-relative paths and file names

No request is ever retried.
"""

import asyncio
from typing import Any
from urllib.parse import quote

import httpx

from filestore.core.exceptions import ContentReadError, TransportError
from filestore.core.logging import get_logger
from filestore.core.sharepoint.auth import SharePointAuthService
from filestore.core.sharepoint.exceptions import (
    SharePointAuthenticationError,
    SharePointError,
    SharePointNotFoundError,
    SharePointPermissionError,
    SharePointRateLimitError,
)

logger = get_logger(__name__)

ODATA_MINIMAL = "application/json;odata=minimalmetadata"
ODATA_VERBOSE = "application/json;odata=verbose"

# Body sent to the list items endpoint by list()
CUSTOM_LIST_ITEM_BODY = b'{"__metadata":{"type":"SP.Data.CustomListItem"},"Title":"Test"}'

# Redirect targets that mean the request needs an interactive sign-in
SIGN_IN_PATHS = ("/_forms/", "/_layouts/15/authenticate.aspx")


def escape_path(value: str) -> str:
    """Escape a value for use inside a quoted OData string literal in a URL.

    Single quotes are doubled (OData literal escaping), then the value is
    percent-encoded so characters like space, %, & and ' reach SharePoint
    unchanged. Slashes are kept since server-relative paths contain them.
    """
    return quote(value.replace("'", "''"), safe="/")


class SharePointClient:
    """Low-level SharePoint REST client bound to one site.

    Attributes:
        LIST_TITLE: Title of the list enumerated by list_items
    """

    LIST_TITLE = "Custom"

    def __init__(self, auth_service: SharePointAuthService) -> None:
        """Initialize client with authentication service.

        Args:
            auth_service: SharePointAuthService for token acquisition
        """
        self._auth = auth_service
        self._client: httpx.AsyncClient | None = None
        self._client_loop: asyncio.AbstractEventLoop | None = None

    @property
    def site_url(self) -> str:
        return self._auth.site_url

    @property
    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request unless overridden per call."""
        return {
            "Accept": ODATA_MINIMAL,
            "Accept-Language": self._auth.config.accept_language,
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client for the running event loop.

        An httpx.AsyncClient's connection pool belongs to the loop it was
        first used on. A session cached in a registry can outlive that loop
        (one asyncio.run() per CLI call or test), so a client created on a
        different loop is dropped and rebuilt.

        Must be called from a coroutine.
        """
        loop = asyncio.get_running_loop()

        if (
            self._client is not None
            and self._client_loop is not None
            and self._client_loop is not loop
        ):
            # Old pool cannot be closed from here; its loop may be gone
            logger.debug("sharepoint_client_loop_changed", site_url=self.site_url)
            self._client = None

        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.site_url,
                headers=self.default_headers,
                timeout=self._auth.config.timeout_seconds,
            )
            logger.debug("sharepoint_client_created", site_url=self.site_url)

        self._client_loop = loop
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources.

        A client created on another event loop is dropped without closing.
        """
        if self._client:
            if self._client_loop in (None, asyncio.get_running_loop()):
                await self._client.aclose()
            self._client = None
            self._client_loop = None
            logger.debug("sharepoint_client_closed")

    async def request(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute one authenticated request and map failure statuses.

        Args:
            method: HTTP method
            path: Site-relative API path (e.g. /_api/web/...)
            headers: Per-call headers overriding the shared ones
            **kwargs: Additional arguments for httpx request

        Returns:
            httpx.Response with a 2xx status and a fully read body

        Raises:
            TransportError: If the request cannot be built or sent
            ContentReadError: If the response body cannot be read
            SharePointAuthenticationError: On HTTP 401, a redirect to a sign-in
                host, or token failure
            SharePointPermissionError: On HTTP 403
            SharePointNotFoundError: On HTTP 404
            SharePointRateLimitError: On HTTP 429
            SharePointError: On any other non-2xx status (including 3xx)
        """
        client = self._get_client()
        token = await asyncio.to_thread(self._auth.get_token)

        request_headers = {"Authorization": f"Bearer {token}"}
        if headers:
            request_headers.update(headers)

        logger.debug("sharepoint_request", method=method, path=path)

        try:
            request = client.build_request(
                method, path, headers=request_headers, **kwargs
            )
            response = await client.send(request)
        except httpx.InvalidURL as e:
            logger.error("sharepoint_request_invalid_url", path=path, error=str(e))
            raise TransportError(f"Invalid request URL for {path}: {e}") from e
        except (httpx.ReadError, httpx.DecodingError, httpx.StreamError) as e:
            logger.error("sharepoint_response_read_error", path=path, error=str(e))
            raise ContentReadError(f"Unable to read response body: {e}") from e
        except httpx.RequestError as e:
            logger.error(
                "sharepoint_request_error",
                method=method,
                path=path,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise TransportError(f"Request to {path} failed: {e}") from e

        self._raise_for_status(response, path)

        logger.debug(
            "sharepoint_request_success",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        if 300 <= status < 400:
            self._raise_for_redirect(response, path)

        if status == 401:
            logger.error("sharepoint_authentication_error", path=path)
            raise SharePointAuthenticationError(
                f"Authentication failed: {response.text}", status_code=status
            )

        if status == 403:
            logger.error("sharepoint_permission_error", path=path)
            raise SharePointPermissionError(
                f"Permission denied: {response.text}", status_code=status
            )

        if status == 404:
            logger.warning("sharepoint_not_found", path=path)
            raise SharePointNotFoundError(
                f"Resource not found: {path}", status_code=status
            )

        if status == 429:
            retry_after = response.headers.get("Retry-After", "")
            logger.error("sharepoint_rate_limited", path=path, retry_after=retry_after)
            raise SharePointRateLimitError(
                "Rate limit exceeded",
                retry_after_seconds=int(retry_after) if retry_after.isdigit() else None,
            )

        logger.error(
            "sharepoint_client_error" if status < 500 else "sharepoint_server_error",
            path=path,
            status_code=status,
            response=response.text[:500],
        )
        raise SharePointError(
            f"SharePoint error {status}: {response.text}", status_code=status
        )

    def _raise_for_redirect(self, response: httpx.Response, path: str) -> None:
        """Raise for a 3xx response; redirects are never followed.

        SharePoint answers a request it will not serve with the token by
        redirecting to a sign-in page, so those map to an authentication
        failure.
        """
        status = response.status_code
        location = response.headers.get("Location", "")
        try:
            target = httpx.URL(location) if location else None
        except httpx.InvalidURL:
            target = None

        if target is not None and (
            target.host.split(".")[0] == "login"
            or any(marker in target.path.lower() for marker in SIGN_IN_PATHS)
        ):
            logger.error(
                "sharepoint_redirected_to_sign_in",
                path=path,
                status_code=status,
                host=target.host,
            )
            raise SharePointAuthenticationError(
                f"Redirected to sign-in page ({status}): {location}",
                status_code=status,
            )

        logger.error(
            "sharepoint_unexpected_redirect",
            path=path,
            status_code=status,
            location=location,
        )
        raise SharePointError(
            f"SharePoint error {status}: unexpected redirect to {location or 'nowhere'}",
            status_code=status,
        )

    async def list_items(self) -> bytes:
        """POST to the items collection of the Custom list.

        Returns:
            Raw response body
        """
        path = f"/_api/web/lists/getByTitle('{self.LIST_TITLE}')/items"
        response = await self.request(
            "POST",
            path,
            content=CUSTOM_LIST_ITEM_BODY,
            headers={"Accept": ODATA_VERBOSE, "Content-Type": ODATA_VERBOSE},
        )
        return response.content

    async def upload_file(self, folder_path: str, filename: str, content: bytes) -> str:
        """Create or overwrite filename inside folder_path.

        Args:
            folder_path: Server-relative folder path
            filename: Target file name
            content: Full file content

        Returns:
            Response body as text (file metadata in verbose OData JSON)
        """
        path = (
            f"/_api/web/getFolderByServerRelativeUrl('{escape_path(folder_path)}')"
            f"/files/add(overwrite=true,url='{escape_path(filename)}')"
        )
        response = await self.request(
            "POST",
            path,
            content=content,
            headers={"Accept": ODATA_VERBOSE},
        )
        return response.text

    async def download_file(self, server_relative_url: str) -> bytes:
        """Download the raw bytes of a file.

        Args:
            server_relative_url: e.g. /sites/site/lib/folder/file.txt
        """
        path = (
            "/_api/Web/GetFileByServerRelativeUrl(@FileServerRelativeUrl)/$value"
            f"?@FileServerRelativeUrl='{escape_path(server_relative_url)}'"
        )
        response = await self.request("GET", path)
        return response.content

    async def recycle_file(self, server_relative_url: str) -> None:
        """Move a file to the site recycle bin.

        Args:
            server_relative_url: e.g. /sites/site/lib/folder/file.txt
        """
        path = (
            f"/_api/web/GetFileByServerRelativeUrl('{escape_path(server_relative_url)}')"
            "/recycle()"
        )
        await self.request("POST", path)
