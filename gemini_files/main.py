"""
Gemini Files MCP Server - Main Entry Point

Serves the Gemini Files tools over stdio (JSON-RPC 2.0, Content-Length
framing). stdout carries protocol frames only; logs go to stderr.

Usage:
    gemini-files-mcp [--api-key KEY] [--base-url URL] [--timeout-ms MS]
                     [--safety-mode read-only|balanced|unsafe] [--log-level LEVEL]

Exit codes: 0 end of input, 2 invalid startup configuration, 1 other failure.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple

from gemini_files import __version__
from gemini_files.config import RuntimeConfig, parse_positive_number
from gemini_files.core.errors import ErrorCode, GeminiFilesError, normalize_error
from gemini_files.core.files import FilesBackend
from gemini_files.core.safety import SafetyMode
from gemini_files.service.client import GeminiFilesClient
from gemini_files.service.ipc import connect_stdio, run_stdio_server
from gemini_files.service.rpc import SERVER_NAME, FilesRpcDispatcher

logger = logging.getLogger("gemini_files.mcp")

USER_AGENT = f"{SERVER_NAME}/{__version__}"

BackendFactory = Callable[[RuntimeConfig], FilesBackend]
StdioConnector = Callable[[], Awaitable[Tuple[Any, Any]]]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def positive_number(value: str) -> float:
    """argparse type for --timeout-ms."""
    try:
        return parse_positive_number(value)
    except GeminiFilesError as e:
        raise argparse.ArgumentTypeError(e.message) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="MCP stdio server for Gemini Files",
    )
    parser.add_argument("--api-key", help="Gemini API key (or GEMINI_API_KEY / GOOGLE_API_KEY)")
    parser.add_argument("--base-url", help="API base URL (or GEMINI_BASE_URL)")
    parser.add_argument(
        "--timeout-ms", type=positive_number, help="Request timeout in milliseconds"
    )
    parser.add_argument(
        "--safety-mode",
        help=f"One of: {', '.join(m.value for m in SafetyMode)} (default: read-only)",
    )
    parser.add_argument("--log-level", help="Logging level for stderr (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def default_backend(config: RuntimeConfig) -> FilesBackend:
    return GeminiFilesClient(config.client_config(user_agent=USER_AGENT))


async def serve(
    config: RuntimeConfig,
    backend_factory: BackendFactory = default_backend,
    connect: StdioConnector = connect_stdio,
) -> None:
    """Run the dispatcher against stdio until end of input."""
    backend = backend_factory(config)
    dispatcher = FilesRpcDispatcher(backend, config.safety_mode)
    try:
        reader, writer = await connect()
        logger.info(
            f"{SERVER_NAME} {__version__} serving on stdio "
            f"(safety_mode={config.safety_mode.value}, base_url={config.base_url})"
        )
        await run_stdio_server(reader, writer, dispatcher.handle_request)
    finally:
        aclose = getattr(backend, "aclose", None)
        if aclose is not None:
            await aclose()


def run_mcp(
    argv: Optional[List[str]] = None,
    env: Optional[Mapping[str, str]] = None,
    backend_factory: BackendFactory = default_backend,
    connect: StdioConnector = connect_stdio,
) -> int:
    """Parse startup flags, resolve configuration and serve. Returns an exit code."""
    env = os.environ if env is None else env
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help / --version exit 0, usage errors exit 2
        return e.code if isinstance(e.code, int) else 0

    try:
        config = RuntimeConfig.resolve(
            env,
            api_key=args.api_key,
            base_url=args.base_url,
            timeout_ms=args.timeout_ms,
            safety_mode=args.safety_mode,
            log_level=args.log_level,
        )
    except GeminiFilesError as e:
        print(e.message, file=sys.stderr)
        return 2

    configure_logging(config.log_level)
    try:
        asyncio.run(serve(config, backend_factory, connect))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0
    except Exception as e:
        error = normalize_error(e)
        logger.error(f"Server stopped ({error.code.value}): {error.message}")
        return 2 if error.code is ErrorCode.VALIDATION else 1
    return 0


def main() -> None:
    sys.exit(run_mcp())


if __name__ == "__main__":
    main()
