"""
RPC Dispatcher - JSON-RPC 2.0 method routing for the MCP server.

Methods:
- initialize                 handshake, static server info
- tools/list                 static tool catalog
- tools/call                 safety gate, then backend call
- notifications/initialized  no response

Failures inside a method become JSON-RPC errors whose `data` is the
structured payload {code, message, retryable, details}. The failure kind
is preserved: a gate denial stays VALIDATION_ERROR, a backend rejection
keeps its AUTH/API/NETWORK kind.
"""

import json
import logging
from typing import Any, Dict, Optional

from gemini_files import __version__
from gemini_files.core.errors import GeminiFilesValidationError, normalize_error
from gemini_files.core.files import FilesBackend, save_bytes
from gemini_files.core.safety import FileOperation, SafetyMode, enforce_safety

from .tools import (
    DownloadArguments,
    ListArguments,
    NameArguments,
    UploadArguments,
    get_tool,
    list_tools,
)

logger = logging.getLogger("service.rpc_dispatcher")

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "gemini-files-mcp"

# JSON-RPC error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
TOOL_ERROR = -32000

CONFIRMATION_HINT = "confirm=true"


def result_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def error_response(
    request_id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def tool_result(payload: Dict[str, Any]) -> Dict[str, Any]:
    """MCP tool result: text content plus the same object as structured content."""
    return {
        "content": [{"type": "text", "text": json.dumps(payload)}],
        "structuredContent": payload,
    }


class FilesRpcDispatcher:
    """
    Routes decoded JSON-RPC messages to handlers.

    The safety mode is fixed for the dispatcher's lifetime.
    """

    def __init__(self, backend: FilesBackend, safety_mode: SafetyMode):
        self.backend = backend
        self.safety_mode = safety_mode

    async def handle_request(self, message: Any) -> Optional[Dict[str, Any]]:
        """Handle one message; returns None when no response is owed."""
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        method = message["method"]
        if "id" not in message:
            logger.debug(f"Notification received: {method}")
            return None

        request_id = message["id"]
        logger.debug(f"Dispatching {method} (id={request_id})")

        if method == "initialize":
            return result_response(
                request_id,
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {"tools": {}},
                    "serverInfo": {"name": SERVER_NAME, "version": __version__},
                },
            )

        if method == "tools/list":
            return result_response(request_id, list_tools())

        if method == "tools/call":
            try:
                result = await self._call_tool(message.get("params"))
            except Exception as e:
                error = normalize_error(e)
                logger.warning(f"tools/call failed ({error.code.value}): {error.message}")
                return error_response(request_id, TOOL_ERROR, error.message, error.to_dict())
            return result_response(request_id, result)

        return error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, params: Any) -> Dict[str, Any]:
        if not isinstance(params, dict):
            raise GeminiFilesValidationError("tools/call params must be an object")

        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise GeminiFilesValidationError("name is required and must be a non-empty string")

        tool = get_tool(name)
        if tool is None:
            raise GeminiFilesValidationError(f"Unknown tool: {name}")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise GeminiFilesValidationError("arguments must be an object")

        # Gate runs before argument validation and before any backend call
        enforce_safety(
            self.safety_mode,
            tool.operation,
            arguments.get("confirm") is True,
            confirmation_hint=CONFIRMATION_HINT,
        )

        return await self._invoke(tool.operation, arguments)

    async def _invoke(self, operation: FileOperation, arguments: Dict[str, Any]) -> Dict[str, Any]:
        if operation is FileOperation.UPLOAD:
            args = UploadArguments.model_validate(arguments)
            file = await self.backend.upload(args.path, args.display_name, args.mime_type)
            return tool_result({"file": file.to_dict()})

        if operation is FileOperation.LIST:
            args = ListArguments.model_validate(arguments)
            page = await self.backend.list(args.page_size, args.page_token)
            return tool_result(page.to_dict())

        if operation is FileOperation.GET:
            args = NameArguments.model_validate(arguments)
            file = await self.backend.get(args.name)
            return tool_result({"file": file.to_dict()})

        if operation is FileOperation.DELETE:
            args = NameArguments.model_validate(arguments)
            await self.backend.delete(args.name)
            return tool_result({"ok": True})

        args = DownloadArguments.model_validate(arguments)
        data = await self.backend.download(args.name)
        size = await save_bytes(args.output_path, data)
        return tool_result({"outputPath": args.output_path, "sizeBytes": size})
