"""SharePoint storage adapter implementing the Filestore interface.

One SharePointFilestore is one authenticated session against a site: it
owns the auth service and the REST client built from a SharePointConfig.
Sessions are normally obtained from a SessionRegistry rather than
constructed directly.
"""

from filestore.config import BackendType, SharePointConfig
from filestore.core.exceptions import ContentReadError, InvalidRequestError
from filestore.core.logging import bind_operation, get_logger
from filestore.core.sharepoint.auth import SharePointAuthService
from filestore.core.sharepoint.client import SharePointClient
from filestore.core.sharepoint.exceptions import (
    SharePointAuthenticationError,
    SharePointError,
    SharePointPermissionError,
    SharePointRateLimitError,
    SharePointUploadError,
)
from filestore.core.storage import Filestore, OperationResult
from filestore.schemas.file import FileModel

logger = get_logger(__name__)

BACKEND = BackendType.SHAREPOINT.value


class SharePointFilestore(Filestore):
    """Filestore implementation for SharePoint Online.

    Implemented capabilities:
    - list: POSTs to the fixed "Custom" list; model.query and model.path
      are currently ignored
    - upload: create-or-overwrite parent_id/name with the content stream
    - download: raw bytes of sources_id
    - delete: soft delete of sources_id to the recycle bin

    search, metadata, move and create_folder return NOT_IMPLEMENTED results.

    Attributes:
        _config: Connection settings this session was built from
        _auth: SharePointAuthService holding the MSAL token cache
        _client: SharePointClient bound to the site
    """

    def __init__(self, config: SharePointConfig) -> None:
        self._config = config
        self._auth = SharePointAuthService(config)
        self._client = SharePointClient(self._auth)

    @property
    def config(self) -> SharePointConfig:
        return self._config

    @property
    def auth(self) -> SharePointAuthService:
        return self._auth

    @property
    def client(self) -> SharePointClient:
        return self._client

    async def close(self) -> None:
        """Close the REST client and release resources."""
        await self._client.close()
        logger.debug("sharepoint_adapter_closed", site_url=self._config.site_url)

    async def list(self, model: FileModel) -> OperationResult:
        """List items of the "Custom" list.

        The listing is fixed; FileModel fields do not parameterize it.

        Returns:
            OperationResult with the raw response body as data
        """
        with bind_operation("list", BACKEND):
            if model.query or model.path:
                logger.debug("sharepoint_list_ignores_model_fields")
            data = await self._client.list_items()
            logger.info("sharepoint_list_success", size=len(data))
            return OperationResult.success(data)

    async def search(self, model: FileModel) -> OperationResult:
        return OperationResult.not_implemented("search")

    async def metadata(self, model: FileModel) -> OperationResult:
        return OperationResult.not_implemented("metadata")

    async def upload(self, model: FileModel) -> OperationResult:
        """Upload model.content as model.name into folder model.parent_id.

        An existing file with the same name is always overwritten.

        Returns:
            OperationResult with the response body text as data

        Raises:
            InvalidRequestError: If parent_id or name is empty
            ContentReadError: If the content stream cannot be read
            SharePointAuthenticationError: If authentication fails
            SharePointPermissionError: If the account may not write the folder
            SharePointRateLimitError: If SharePoint throttles the request
            SharePointUploadError: If SharePoint rejects the upload
            TransportError: If the request cannot be sent
        """
        if not model.parent_id:
            raise InvalidRequestError("upload requires parent_id (destination folder)")
        if not model.name:
            raise InvalidRequestError("upload requires name (target file name)")

        with bind_operation("upload", BACKEND):
            try:
                content = model.read_content()
            except ContentReadError:
                logger.error(
                    "sharepoint_upload_read_failed",
                    folder=model.parent_id,
                    filename=model.name,
                )
                raise

            logger.info(
                "sharepoint_upload_start",
                folder=model.parent_id,
                filename=model.name,
                size=len(content),
            )

            try:
                body = await self._client.upload_file(
                    model.parent_id, model.name, content
                )
            except (
                SharePointAuthenticationError,
                SharePointPermissionError,
                SharePointRateLimitError,
            ):
                raise
            except SharePointError as e:
                logger.error(
                    "sharepoint_upload_failed",
                    filename=model.name,
                    status_code=e.status_code,
                )
                raise SharePointUploadError(
                    f"Failed to upload {model.name}: {e}",
                    filename=model.name,
                    status_code=e.status_code,
                ) from e

            logger.info(
                "sharepoint_upload_success",
                folder=model.parent_id,
                filename=model.name,
            )
            return OperationResult.success(body)

    async def download(self, model: FileModel) -> OperationResult:
        """Download the file at server-relative path model.sources_id.

        Returns:
            OperationResult with the file bytes as data

        Raises:
            InvalidRequestError: If sources_id is empty
            SharePointNotFoundError: If the file does not exist
            SharePointError: For other failure statuses
            TransportError: If the request cannot complete
        """
        if not model.sources_id:
            raise InvalidRequestError(
                "download requires sources_id (server-relative path)"
            )

        with bind_operation("download", BACKEND):
            logger.info("sharepoint_download_start", path=model.sources_id)
            data = await self._client.download_file(model.sources_id)
            logger.info(
                "sharepoint_download_success",
                path=model.sources_id,
                size=len(data),
            )
            return OperationResult.success(data)

    async def delete(self, model: FileModel) -> None:
        """Move the file at model.sources_id to the recycle bin.

        Errors from the client (auth, not found, ...) propagate unchanged.

        Raises:
            InvalidRequestError: If sources_id is empty
        """
        if not model.sources_id:
            raise InvalidRequestError(
                "delete requires sources_id (server-relative path)"
            )

        with bind_operation("delete", BACKEND):
            logger.info("sharepoint_delete_start", path=model.sources_id)
            await self._client.recycle_file(model.sources_id)
            logger.info("sharepoint_delete_success", path=model.sources_id)

    async def move(self, model: FileModel) -> OperationResult:
        return OperationResult.not_implemented("move")

    async def create_folder(self, model: FileModel) -> OperationResult:
        return OperationResult.not_implemented("create_folder")
