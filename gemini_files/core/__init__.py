"""
Core types: safety gate, error taxonomy, file records.
"""

from .errors import ErrorCode, GeminiFilesError, GeminiFilesValidationError, normalize_error
from .files import FilesBackend, GeminiFile, ListFilesResult, normalize_file_name, save_bytes
from .safety import (
    DEFAULT_SAFETY_MODE,
    FileOperation,
    GateDecision,
    SafetyMode,
    decide,
    enforce_safety,
    resolve_safety_mode,
)

__all__ = [
    "ErrorCode",
    "GeminiFilesError",
    "GeminiFilesValidationError",
    "normalize_error",
    "FilesBackend",
    "GeminiFile",
    "ListFilesResult",
    "normalize_file_name",
    "save_bytes",
    "DEFAULT_SAFETY_MODE",
    "FileOperation",
    "GateDecision",
    "SafetyMode",
    "decide",
    "enforce_safety",
    "resolve_safety_mode",
]
