"""File operation request schema."""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_validator,
    model_serializer,
)

from filestore.core.exceptions import ContentReadError


class FileModel(BaseModel):
    """Parameters for a single file or folder operation.

    Which fields matter depends on the operation:
    - upload: parent_id (destination folder), name, content
    - download/delete: sources_id (server-relative file path)
    - move: sources, destination (not yet supported by any backend)

    content is any object with a read() method returning bytes (an open
    "rb" file, io.BytesIO, a socket reader). It is owned by the caller, read
    at most once per request and never seeked or closed here.

    Dumps omit empty strings and lists, so model_dump(by_alias=True) only
    carries the fields that were set.
    """

    model_config = ConfigDict(populate_by_name=True)

    parent_id: str = Field(default="", alias="parentID")
    sources_id: str = Field(default="", alias="sourcesID")
    destination_id: str = Field(default="", alias="destinationID")
    source: str = ""
    sources: list[str] = Field(default_factory=list)
    destination: str = ""
    destinations: list[str] = Field(default_factory=list)
    name: str = ""
    mime_type: str = Field(default="", alias="mimeType")
    path: str = ""
    content: Any = Field(default=None, exclude=True, repr=False)
    query: str = ""

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Any) -> Any:
        """Accept only objects exposing a read() method."""
        if v is not None and not callable(getattr(v, "read", None)):
            raise ValueError("content must be a readable binary stream")
        return v

    @model_serializer(mode="wrap")
    def omit_empty(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        """Drop empty strings and lists from serialized output."""
        data = handler(self)
        return {key: value for key, value in data.items() if value not in ("", [])}

    def read_content(self) -> bytes:
        """Read the content stream fully, exactly once.

        Returns:
            All bytes from the stream

        Raises:
            ContentReadError: If no stream was given or it cannot be read
        """
        if self.content is None:
            raise ContentReadError("No content stream supplied")

        try:
            data = self.content.read()
        except (OSError, ValueError) as e:
            # ValueError covers reads from a closed file
            raise ContentReadError(f"Unable to read content: {e}") from e

        if isinstance(data, bytearray | memoryview):
            data = bytes(data)
        if not isinstance(data, bytes):
            raise ContentReadError(
                f"Content stream returned {type(data).__name__}, expected bytes"
            )
        return data
