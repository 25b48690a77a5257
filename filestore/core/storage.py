"""File storage abstraction layer.

This module provides the capability interface every storage backend
implements, so calling code can stay backend-agnostic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from filestore.schemas.file import FileModel


class OperationStatus(Enum):
    """Outcome of a capability call."""

    SUCCESS = "success"
    NOT_IMPLEMENTED = "not_implemented"


@dataclass
class OperationResult:
    """Result of a capability call.

    A NOT_IMPLEMENTED result is neither an error nor a success: the backend
    declares the capability but does not perform it yet. Callers that need
    a real result must check is_implemented.
    """

    status: OperationStatus
    data: bytes | str | None = None
    message: str | None = None
    errors: list[Exception] = field(default_factory=list)

    @classmethod
    def success(cls, data: bytes | str | None) -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, data=data)

    @classmethod
    def not_implemented(cls, capability: str) -> "OperationResult":
        return cls(
            status=OperationStatus.NOT_IMPLEMENTED,
            message=f"{capability} is not supported by this backend yet",
        )

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS and not self.errors

    @property
    def is_implemented(self) -> bool:
        return self.status is not OperationStatus.NOT_IMPLEMENTED


class Filestore(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod
    async def list(self, model: FileModel) -> OperationResult:
        """Enumerate items in the backend's listing collection."""
        pass

    @abstractmethod
    async def search(self, model: FileModel) -> OperationResult:
        """Search items matching model.query."""
        pass

    @abstractmethod
    async def metadata(self, model: FileModel) -> OperationResult:
        """Fetch metadata for a single item."""
        pass

    @abstractmethod
    async def upload(self, model: FileModel) -> OperationResult:
        """Create or overwrite model.name inside model.parent_id."""
        pass

    @abstractmethod
    async def download(self, model: FileModel) -> OperationResult:
        """Return the raw bytes of the file at model.sources_id."""
        pass

    @abstractmethod
    async def delete(self, model: FileModel) -> None:
        """Soft-delete the file at model.sources_id."""
        pass

    @abstractmethod
    async def move(self, model: FileModel) -> OperationResult:
        """Move model.sources to model.destination.

        Per-item failures are reported in OperationResult.errors.
        """
        pass

    @abstractmethod
    async def create_folder(self, model: FileModel) -> OperationResult:
        """Create the folder named by model.destination."""
        pass

    async def close(self) -> None:
        """Release transport resources held by the backend."""
        return None
