"""
Gemini Files API client - async HTTP backend for both front-ends.

Talks to the Gemini Files REST API with httpx:
- POST   /upload/v1beta/files          (resumable: start, then upload+finalize)
- GET    /v1beta/files                 (paged listing)
- GET    /v1beta/files/{id}
- DELETE /v1beta/files/{id}
- GET    /v1beta/files/{id}:download   (alt=media)

Every failure leaving this module is a GeminiFilesError.
"""

import logging
import mimetypes
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import aiofiles
import httpx

from gemini_files.core.errors import (
    ErrorCode,
    GeminiFilesError,
    GeminiFilesValidationError,
    normalize_error,
)
from gemini_files.core.files import GeminiFile, ListFilesResult, normalize_file_name

logger = logging.getLogger("service.files_client")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
API_VERSION = "v1beta"
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class FilesClientConfig:
    """Connection settings for the Gemini Files API."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: Optional[float] = None
    user_agent: Optional[str] = None


@contextmanager
def _translated_errors(operation: str) -> Iterator[None]:
    """Re-raise anything unclassified as a GeminiFilesError."""
    try:
        yield
    except GeminiFilesError:
        raise
    except Exception as exc:
        error = normalize_error(exc)
        logger.debug(f"{operation} failed ({error.code.value}): {error.message}")
        raise error from exc


def _map_file(raw: Any) -> GeminiFile:
    name = raw.get("name") if isinstance(raw, dict) else None
    if not isinstance(name, str) or not name:
        raise GeminiFilesValidationError("Gemini API returned a file without a name", details=raw)
    return GeminiFile.model_validate(raw)


def _page_token(payload: Dict[str, Any]) -> Optional[str]:
    token = payload.get("nextPageToken")
    return token if isinstance(token, str) and token else None


def _require(value: Optional[str], message: str) -> str:
    if not value:
        raise GeminiFilesValidationError(message)
    return value


class GeminiFilesClient:
    """
    Async Gemini Files API client.

    Usage:
        async with GeminiFilesClient(FilesClientConfig(api_key="...")) as client:
            page = await client.list(page_size=10)
    """

    def __init__(
        self,
        config: FilesClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not config.api_key:
            raise GeminiFilesValidationError("Missing api_key in FilesClientConfig")

        headers = {"x-goog-api-key": config.api_key}
        if config.user_agent:
            headers["User-Agent"] = config.user_agent

        timeout = config.timeout_ms / 1000 if config.timeout_ms else None
        self.config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GeminiFilesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def upload(
        self,
        path: str,
        display_name: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> GeminiFile:
        """Upload a local file and return the created record."""
        _require(path, "upload requires a file path")
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            raise GeminiFilesValidationError(f"Cannot read {path}: {e.strerror or e}") from e

        mime_type = mime_type or mimetypes.guess_type(path)[0] or DEFAULT_MIME_TYPE
        metadata: Dict[str, Any] = {}
        if display_name:
            metadata["displayName"] = display_name

        with _translated_errors("upload"):
            start = await self._http.post(
                f"/upload/{API_VERSION}/files",
                headers={
                    "X-Goog-Upload-Protocol": "resumable",
                    "X-Goog-Upload-Command": "start",
                    "X-Goog-Upload-Header-Content-Length": str(len(data)),
                    "X-Goog-Upload-Header-Content-Type": mime_type,
                },
                json={"file": metadata},
            )
            start.raise_for_status()

            upload_url = start.headers.get("x-goog-upload-url")
            if not upload_url:
                raise GeminiFilesError(
                    ErrorCode.API,
                    "Gemini API did not return an upload URL",
                    retryable=False,
                    status=start.status_code,
                )

            finalize = await self._http.post(
                upload_url,
                headers={
                    "X-Goog-Upload-Offset": "0",
                    "X-Goog-Upload-Command": "upload, finalize",
                },
                content=data,
            )
            finalize.raise_for_status()
            payload = finalize.json()

        logger.info(f"Uploaded {path} ({len(data)} bytes)")
        return _map_file(payload.get("file") if isinstance(payload, dict) else None)

    async def list(
        self, page_size: Optional[int] = None, page_token: Optional[str] = None
    ) -> ListFilesResult:
        """Fetch one page of files."""
        params: Dict[str, Any] = {}
        if page_size is not None:
            params["pageSize"] = page_size
        if page_token:
            params["pageToken"] = page_token

        with _translated_errors("list"):
            response = await self._http.get(f"/{API_VERSION}/files", params=params)
            response.raise_for_status()
            payload = response.json() or {}
            files = [_map_file(raw) for raw in payload.get("files", [])]

        return ListFilesResult(files=files, next_page_token=_page_token(payload))

    async def get(self, name: str) -> GeminiFile:
        _require(name, "get requires a file name")
        with _translated_errors("get"):
            response = await self._http.get(f"/{API_VERSION}/{normalize_file_name(name)}")
            response.raise_for_status()
            payload = response.json()
        return _map_file(payload)

    async def delete(self, name: str) -> None:
        _require(name, "delete requires a file name")
        with _translated_errors("delete"):
            response = await self._http.delete(f"/{API_VERSION}/{normalize_file_name(name)}")
            response.raise_for_status()
        logger.info(f"Deleted {normalize_file_name(name)}")

    async def download(self, name: str) -> bytes:
        """Return the raw bytes of a file."""
        _require(name, "download requires a file name")
        with _translated_errors("download"):
            response = await self._http.get(
                f"/{API_VERSION}/{normalize_file_name(name)}:download",
                params={"alt": "media"},
            )
            response.raise_for_status()
        return response.content
