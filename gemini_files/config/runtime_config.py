"""
Runtime configuration for the CLI and the MCP server.

Resolved once at process start. Explicit flag values win over environment
variables, which win over defaults:

  --api-key      GEMINI_API_KEY, then GOOGLE_API_KEY   (required)
  --base-url     GEMINI_BASE_URL                       (default: public endpoint)
  --timeout-ms   GEMINI_TIMEOUT_MS                     (optional, > 0)
  --safety-mode  GEMINI_FILES_SAFETY_MODE              (default: read-only)
  --log-level    GEMINI_FILES_LOG_LEVEL
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from gemini_files.core.errors import GeminiFilesValidationError
from gemini_files.core.safety import DEFAULT_SAFETY_MODE, SafetyMode, resolve_safety_mode
from gemini_files.service.client.files_client import DEFAULT_BASE_URL, FilesClientConfig

logger = logging.getLogger("gemini_files.config")

API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
BASE_URL_VAR = "GEMINI_BASE_URL"
TIMEOUT_VAR = "GEMINI_TIMEOUT_MS"
SAFETY_MODE_VAR = "GEMINI_FILES_SAFETY_MODE"
LOG_LEVEL_VAR = "GEMINI_FILES_LOG_LEVEL"


def parse_positive_number(raw: str, label: str = "timeout-ms") -> float:
    """Parse a strictly positive, finite number."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value) or value <= 0:
        raise GeminiFilesValidationError(f"{label} must be a positive number")
    return value


def parse_log_level(raw: Optional[str], default: str) -> str:
    level = (raw or default).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise GeminiFilesValidationError(f"Invalid log level: {raw}")
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    """Fully resolved settings; nothing downstream reads the environment."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: Optional[float] = None
    safety_mode: SafetyMode = DEFAULT_SAFETY_MODE
    log_level: str = "INFO"

    @classmethod
    def resolve(
        cls,
        env: Mapping[str, str],
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_ms: Optional[float] = None,
        safety_mode: Optional[str] = None,
        log_level: Optional[str] = None,
        default_log_level: str = "INFO",
    ) -> "RuntimeConfig":
        """
        Resolve settings from explicit values and an environment mapping.

        Raises:
            GeminiFilesValidationError: missing API key or invalid value
        """
        mode = resolve_safety_mode(safety_mode, env.get(SAFETY_MODE_VAR))

        if timeout_ms is None and env.get(TIMEOUT_VAR):
            timeout_ms = parse_positive_number(env[TIMEOUT_VAR], TIMEOUT_VAR)
        elif timeout_ms is not None:
            timeout_ms = parse_positive_number(timeout_ms)

        key = api_key or next((env[v] for v in API_KEY_VARS if env.get(v)), None)
        if not key:
            raise GeminiFilesValidationError(
                "Missing API key. Set GEMINI_API_KEY, GOOGLE_API_KEY, or pass --api-key."
            )

        config = cls(
            api_key=key,
            base_url=base_url or env.get(BASE_URL_VAR) or DEFAULT_BASE_URL,
            timeout_ms=timeout_ms,
            safety_mode=mode,
            log_level=parse_log_level(log_level or env.get(LOG_LEVEL_VAR), default_log_level),
        )
        logger.debug(
            f"Resolved config: base_url={config.base_url} timeout_ms={config.timeout_ms} "
            f"safety_mode={config.safety_mode.value}"
        )
        return config

    def client_config(self, user_agent: Optional[str] = None) -> FilesClientConfig:
        return FilesClientConfig(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout_ms=self.timeout_ms,
            user_agent=user_agent,
        )
