"""
Shared fixtures: an in-memory files backend.
"""

from typing import Dict, List, Optional, Tuple

import pytest

from gemini_files.core.files import GeminiFile, ListFilesResult, normalize_file_name


class FakeBackend:
    """In-memory stand-in for GeminiFilesClient that records every call."""

    def __init__(self, files: Optional[List[str]] = None):
        self.files: Dict[str, bytes] = {normalize_file_name(n): b"data" for n in files or []}
        self.calls: List[Tuple[str, tuple]] = []
        self.errors: Dict[str, Exception] = {}
        self.next_page_token: Optional[str] = None
        self.closed = False

    def fail(self, operation: str, error: Exception) -> None:
        self.errors[operation] = error

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, args))
        if operation in self.errors:
            raise self.errors[operation]

    @property
    def operations(self) -> List[str]:
        return [op for op, _ in self.calls]

    async def upload(self, path, display_name=None, mime_type=None) -> GeminiFile:
        self._record("upload", path, display_name, mime_type)
        name = f"files/{len(self.files) + 1}"
        self.files[name] = b"uploaded"
        return GeminiFile(name=name, display_name=display_name, mime_type=mime_type)

    async def list(self, page_size=None, page_token=None) -> ListFilesResult:
        self._record("list", page_size, page_token)
        return ListFilesResult(
            files=[GeminiFile(name=name) for name in self.files],
            next_page_token=self.next_page_token,
        )

    async def get(self, name) -> GeminiFile:
        self._record("get", name)
        return GeminiFile(name=normalize_file_name(name), state="ACTIVE")

    async def delete(self, name) -> None:
        self._record("delete", name)
        self.files.pop(normalize_file_name(name), None)

    async def download(self, name) -> bytes:
        self._record("download", name)
        return self.files.get(normalize_file_name(name), b"")

    async def aclose(self) -> None:
        self.closed = True


class StatusError(Exception):
    """Backend-style failure carrying an HTTP status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


@pytest.fixture
def backend():
    return FakeBackend(files=["files/1", "files/2"])
