"""
Safety Gate - Which file operations may run under which safety mode.

The gate is a pure function of (mode, operation, confirmed). Both the CLI
and the MCP server call it before any side-effecting backend call; they
differ only in where `confirmed` comes from (`--force` vs `confirm=true`).

Mode matrix for mutating operations (upload, delete, download):
- read-only: always denied
- balanced:  allowed only when confirmed
- unsafe:    always allowed

Non-mutating operations (list, get) are allowed in every mode.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import GeminiFilesValidationError

logger = logging.getLogger(__name__)


class SafetyMode(Enum):
    """Authorization mode, resolved once at startup."""

    READ_ONLY = "read-only"  # Block every mutating operation
    BALANCED = "balanced"  # Mutating operations need per-call confirmation
    UNSAFE = "unsafe"  # Allow everything


DEFAULT_SAFETY_MODE = SafetyMode.READ_ONLY


class FileOperation(Enum):
    """Backend capability being invoked."""

    UPLOAD = "upload"
    LIST = "list"
    GET = "get"
    DELETE = "delete"
    DOWNLOAD = "download"

    @property
    def is_mutating(self) -> bool:
        # download writes to the local filesystem
        return self in (FileOperation.UPLOAD, FileOperation.DELETE, FileOperation.DOWNLOAD)


@dataclass(frozen=True)
class GateDecision:
    """Outcome of a gate check."""

    allowed: bool
    reason: str
    reason_code: str
    requires_confirmation: bool = False


def decide(mode: SafetyMode, operation: FileOperation, confirmed: bool) -> GateDecision:
    """
    Decide whether an operation may run.

    Args:
        mode: Resolved safety mode
        operation: Operation about to be invoked
        confirmed: Per-call confirmation (CLI --force or RPC confirm=true)

    Returns:
        GateDecision; never raises
    """
    if not operation.is_mutating:
        return GateDecision(
            allowed=True,
            reason=f"Operation {operation.value} does not modify anything",
            reason_code="NON_MUTATING",
        )

    if mode is SafetyMode.READ_ONLY:
        return GateDecision(
            allowed=False,
            reason=f"Operation {operation.value} is blocked in read-only safety mode",
            reason_code="READ_ONLY_MODE",
        )

    if mode is SafetyMode.BALANCED:
        if confirmed:
            return GateDecision(
                allowed=True,
                reason=f"Operation {operation.value} confirmed in balanced safety mode",
                reason_code="CONFIRMED",
            )
        return GateDecision(
            allowed=False,
            reason=(
                f"Operation {operation.value} requires explicit confirmation "
                "in balanced safety mode"
            ),
            reason_code="CONFIRMATION_REQUIRED",
            requires_confirmation=True,
        )

    return GateDecision(
        allowed=True,
        reason=f"Operation {operation.value} allowed in unsafe safety mode",
        reason_code="UNSAFE_MODE",
    )


def enforce_safety(
    mode: SafetyMode,
    operation: FileOperation,
    confirmed: bool,
    confirmation_hint: Optional[str] = None,
) -> GateDecision:
    """
    Run the gate and raise a validation error on denial.

    `confirmation_hint` names the front-end's confirmation switch and is
    appended to confirmation-required denials.
    """
    decision = decide(mode, operation, confirmed)
    if decision.allowed:
        return decision

    message = decision.reason
    if decision.requires_confirmation and confirmation_hint:
        message = f"{message} (pass {confirmation_hint})"

    logger.warning(f"Safety gate denied {operation.value} ({decision.reason_code})")
    details = {
        "operation": operation.value,
        "mode": mode.value,
        "reason_code": decision.reason_code,
    }
    raise GeminiFilesValidationError(message, details=details)


def parse_safety_mode(raw: Optional[str]) -> Optional[SafetyMode]:
    """Parse a mode string; empty means unset, unknown is a validation error."""
    if not raw:
        return None
    try:
        return SafetyMode(raw)
    except ValueError:
        expected = ", ".join(m.value for m in SafetyMode)
        raise GeminiFilesValidationError(
            f"Invalid safety mode: {raw}. Expected one of: {expected}"
        ) from None


def resolve_safety_mode(
    explicit: Optional[str] = None,
    fallback: Optional[str] = None,
    default: SafetyMode = DEFAULT_SAFETY_MODE,
) -> SafetyMode:
    """Explicit value > fallback (environment) > default."""
    return parse_safety_mode(explicit) or parse_safety_mode(fallback) or default
