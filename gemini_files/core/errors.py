"""
Error taxonomy for Gemini Files operations.

Every failure that leaves the backend client or a front-end is one of five
kinds. The kind decides the CLI exit code and the structured RPC payload.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

import httpx
import pydantic

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable failure kinds."""

    VALIDATION = "VALIDATION_ERROR"  # Rejected locally (input or policy)
    AUTH = "AUTH_ERROR"  # Credential rejected by the backend
    API = "API_ERROR"  # Backend rejected the request
    NETWORK = "NETWORK_ERROR"  # Transport-level failure
    INTERNAL = "INTERNAL_ERROR"  # Unclassified


class GeminiFilesError(Exception):
    """Base class for classified Gemini Files failures."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        retryable: bool,
        status: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.retryable = retryable
        self.status = status
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Structured payload used for RPC error data."""
        data: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.status is not None:
            data["details"] = {"status": self.status, "details": self.details}
        elif self.details is not None:
            data["details"] = self.details
        return data


class GeminiFilesValidationError(GeminiFilesError):
    """Input or policy rejected locally. Never retryable."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.VALIDATION, message, retryable=False, details=details)


def _status_from(exc: BaseException) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    for attr in ("status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _message_from(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"]
        return f"HTTP {exc.response.status_code} from Gemini Files API"
    return str(exc) or exc.__class__.__name__


def _response_body(exc: httpx.HTTPStatusError) -> Any:
    try:
        return exc.response.json()
    except ValueError:
        return exc.response.text or None


def normalize_error(exc: BaseException) -> GeminiFilesError:
    """
    Classify any exception into a GeminiFilesError.

    Already-classified errors are returned unchanged so a policy rejection
    is never relabelled as a backend failure.
    """
    if isinstance(exc, GeminiFilesError):
        return exc

    if isinstance(exc, pydantic.ValidationError):
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
            for err in exc.errors()
        ]
        return GeminiFilesValidationError(
            "Invalid arguments: " + "; ".join(problems), details=problems
        )

    status = _status_from(exc)
    message = _message_from(exc)

    if status in (401, 403):
        details = _response_body(exc) if isinstance(exc, httpx.HTTPStatusError) else None
        return GeminiFilesError(
            ErrorCode.AUTH, message, retryable=False, status=status, details=details
        )

    if status is not None:
        details = _response_body(exc) if isinstance(exc, httpx.HTTPStatusError) else None
        return GeminiFilesError(
            ErrorCode.API,
            message,
            retryable=status == 429 or status >= 500,
            status=status,
            details=details,
        )

    if isinstance(exc, httpx.RequestError):
        return GeminiFilesError(ErrorCode.NETWORK, message, retryable=True)

    logger.debug(f"Unclassified failure {exc.__class__.__name__}: {message}")
    return GeminiFilesError(ErrorCode.INTERNAL, message, retryable=False)
