"""
File records and the backend capability interface.
"""

from typing import Any, Dict, List, Optional, Protocol

import aiofiles
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import GeminiFilesValidationError


class GeminiFile(BaseModel):
    """Remote file record as reported by the Gemini Files API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    display_name: Optional[str] = Field(None, alias="displayName")
    mime_type: Optional[str] = Field(None, alias="mimeType")
    size_bytes: Optional[str] = Field(None, alias="sizeBytes")
    create_time: Optional[str] = Field(None, alias="createTime")
    update_time: Optional[str] = Field(None, alias="updateTime")
    state: Optional[str] = None
    uri: Optional[str] = None
    download_uri: Optional[str] = Field(None, alias="downloadUri")

    @field_validator(
        "display_name",
        "mime_type",
        "size_bytes",
        "create_time",
        "update_time",
        "state",
        "uri",
        "download_uri",
        mode="before",
    )
    @classmethod
    def _drop_non_strings(cls, value: Any) -> Optional[str]:
        # Optional metadata of an unexpected type is dropped, not rejected
        return value if isinstance(value, str) else None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ListFilesResult(BaseModel):
    """One page of files."""

    model_config = ConfigDict(populate_by_name=True)

    files: List[GeminiFile] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FilesBackend(Protocol):
    """
    Capabilities consumed by both front-ends.

    Implementations raise GeminiFilesError subclasses only.
    """

    async def upload(
        self,
        path: str,
        display_name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> GeminiFile: ...

    async def list(
        self, page_size: Optional[int] = None, page_token: Optional[str] = None
    ) -> ListFilesResult: ...

    async def get(self, name: str) -> GeminiFile: ...

    async def delete(self, name: str) -> None: ...

    async def download(self, name: str) -> bytes: ...


def normalize_file_name(name: str) -> str:
    """`abc` -> `files/abc`; already-qualified names pass through."""
    return name if name.startswith("files/") else f"files/{name}"


async def save_bytes(path: str, data: bytes) -> int:
    """Write downloaded bytes to a local path. Returns the byte count."""
    if not path:
        raise GeminiFilesValidationError("download requires an output path")
    try:
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
    except OSError as e:
        raise GeminiFilesValidationError(f"Cannot write {path}: {e.strerror or e}") from e
    return len(data)
