#!/usr/bin/env python3
"""
Gemini Files CLI

Command-line interface for the Gemini Files API.

Exit codes:
  0  success
  2  validation / usage error (including safety-gate denials)
  3  authentication failure
  4  API failure
  5  network failure
  1  anything else
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Mapping, Optional

from gemini_files import __version__
from gemini_files.config import RuntimeConfig, parse_positive_number
from gemini_files.core.errors import (
    ErrorCode,
    GeminiFilesError,
    GeminiFilesValidationError,
    normalize_error,
)
from gemini_files.core.files import FilesBackend, save_bytes
from gemini_files.core.safety import FileOperation, SafetyMode, enforce_safety
from gemini_files.service.client import GeminiFilesClient

logger = logging.getLogger("gemini_files.cli")

PROG = "gemini-files"
USER_AGENT = f"{PROG}/{__version__}"
CONFIRMATION_HINT = "--force"

EXIT_CODES = {
    ErrorCode.VALIDATION: 2,
    ErrorCode.AUTH: 3,
    ErrorCode.API: 4,
    ErrorCode.NETWORK: 5,
    ErrorCode.INTERNAL: 1,
}

ClientFactory = Callable[[RuntimeConfig], FilesBackend]


def exit_code_for(error: GeminiFilesError) -> int:
    return EXIT_CODES.get(error.code, 1)


def default_client(config: RuntimeConfig) -> FilesBackend:
    return GeminiFilesClient(config.client_config(user_agent=USER_AGENT))


def _positive_number(value: str) -> float:
    try:
        return parse_positive_number(value)
    except GeminiFilesError as e:
        raise argparse.ArgumentTypeError(e.message) from None


def _page_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError:
        size = 0
    if size <= 0:
        raise argparse.ArgumentTypeError("page-size must be a positive integer")
    return size


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


# =============================================================================
# Commands
# =============================================================================


async def cmd_upload(client: FilesBackend, args, mode: SafetyMode) -> None:
    """Upload a local file."""
    enforce_safety(mode, FileOperation.UPLOAD, args.force, CONFIRMATION_HINT)

    file = await client.upload(args.path, args.display_name, args.mime_type)
    if args.json:
        _print_json({"file": file.to_dict()})
    else:
        print(f"Uploaded: {file.name}")


async def cmd_list(client: FilesBackend, args, mode: SafetyMode) -> None:
    """List one page of files."""
    page = await client.list(args.page_size, args.page_token)
    if args.json:
        _print_json(page.to_dict())
        return

    for file in page.files:
        print(file.name)
    if page.next_page_token:
        print(f"nextPageToken={page.next_page_token}")


async def cmd_get(client: FilesBackend, args, mode: SafetyMode) -> None:
    file = await client.get(args.name)
    if args.json:
        _print_json({"file": file.to_dict()})
    else:
        print(file.name)


async def cmd_delete(client: FilesBackend, args, mode: SafetyMode) -> None:
    """Delete a file. Needs --force regardless of safety mode."""
    if not args.force:
        raise GeminiFilesValidationError("Delete requires --force to avoid accidental removal")
    enforce_safety(mode, FileOperation.DELETE, args.force, CONFIRMATION_HINT)

    await client.delete(args.name)
    if args.json:
        _print_json({"ok": True})
    else:
        print(f"Deleted: {args.name}")


async def cmd_download(client: FilesBackend, args, mode: SafetyMode) -> None:
    """Download a file to --output."""
    if not args.output:
        raise GeminiFilesValidationError("download requires --output <path>")
    enforce_safety(mode, FileOperation.DOWNLOAD, args.force, CONFIRMATION_HINT)

    data = await client.download(args.name)
    size = await save_bytes(args.output, data)
    if args.json:
        _print_json({"outputPath": args.output, "sizeBytes": size})
    else:
        print(f"Downloaded: {args.name} -> {args.output} ({size} bytes)")


# =============================================================================
# Entry point
# =============================================================================


def _global_options(argument_default: Any = None) -> argparse.ArgumentParser:
    """
    Options accepted before or after the verb.

    Verb parsers get a copy with SUPPRESS defaults so an option given only
    before the verb is not reset by the verb parser.
    """
    options = argparse.ArgumentParser(add_help=False, argument_default=argument_default)
    options.add_argument("--api-key", help="Gemini API key (or GEMINI_API_KEY / GOOGLE_API_KEY)")
    options.add_argument("--base-url", help="API base URL (or GEMINI_BASE_URL)")
    options.add_argument(
        "--timeout-ms", type=_positive_number, help="Request timeout in milliseconds"
    )
    options.add_argument(
        "--safety-mode",
        help=f"One of: {', '.join(m.value for m in SafetyMode)}",
    )
    options.add_argument("--json", action="store_true", help="Print JSON output")
    options.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Manage files in the Gemini Files API",
        epilog="Safety modes: read-only (default), balanced, unsafe",
        parents=[_global_options()],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    verb_options = [_global_options(argparse.SUPPRESS)]

    upload = subparsers.add_parser("upload", help="Upload a file", parents=verb_options)
    upload.add_argument("path")
    upload.add_argument("--display-name")
    upload.add_argument("--mime-type")
    upload.add_argument("--force", action="store_true")
    upload.set_defaults(func=cmd_upload)

    list_parser = subparsers.add_parser("list", help="List files", parents=verb_options)
    list_parser.add_argument("--page-size", type=_page_size)
    list_parser.add_argument("--page-token")
    list_parser.set_defaults(func=cmd_list)

    get = subparsers.add_parser("get", help="Show one file", parents=verb_options)
    get.add_argument("name")
    get.set_defaults(func=cmd_get)

    delete = subparsers.add_parser(
        "delete", help="Delete a file (requires --force)", parents=verb_options
    )
    delete.add_argument("name")
    delete.add_argument("--force", action="store_true")
    delete.set_defaults(func=cmd_delete)

    download = subparsers.add_parser("download", help="Download a file", parents=verb_options)
    download.add_argument("name")
    download.add_argument("--output")
    download.add_argument("--force", action="store_true")
    download.set_defaults(func=cmd_download)

    return parser


async def _execute(args, config: RuntimeConfig, client_factory: ClientFactory) -> None:
    client = client_factory(config)
    try:
        await args.func(client, args, config.safety_mode)
    finally:
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()


def run_cli(
    argv: Optional[List[str]] = None,
    env: Optional[Mapping[str, str]] = None,
    client_factory: ClientFactory = default_client,
) -> int:
    """Run one CLI invocation and return its exit code."""
    env = os.environ if env is None else env
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if not argv:
        parser.print_help()
        return 0

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0

    if args.command is None:
        print("No command given. Expected upload|list|get|delete|download", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2

    try:
        config = RuntimeConfig.resolve(
            env,
            api_key=args.api_key,
            base_url=args.base_url,
            timeout_ms=args.timeout_ms,
            safety_mode=args.safety_mode,
            log_level="DEBUG" if args.verbose else None,
            default_log_level="WARNING",
        )
        logging.basicConfig(
            level=config.log_level,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
        asyncio.run(_execute(args, config, client_factory))
    except Exception as e:
        error = normalize_error(e)
        print(error.message, file=sys.stderr)
        if error.code is ErrorCode.VALIDATION:
            parser.print_usage(sys.stderr)
        return exit_code_for(error)

    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
