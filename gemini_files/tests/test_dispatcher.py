"""
Tests for JSON-RPC dispatch and tool calls.
"""

import asyncio
import json

import pytest

from gemini_files.core.safety import SafetyMode
from gemini_files.service.rpc import FilesRpcDispatcher
from gemini_files.service.rpc.dispatcher import PROTOCOL_VERSION, SERVER_NAME

from .conftest import StatusError


def call(dispatcher, message):
    return asyncio.run(dispatcher.handle_request(message))


def tool_call(dispatcher, name, arguments=None, request_id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return call(
        dispatcher,
        {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params},
    )


@pytest.fixture
def read_only(backend):
    return FilesRpcDispatcher(backend, SafetyMode.READ_ONLY)


@pytest.fixture
def balanced(backend):
    return FilesRpcDispatcher(backend, SafetyMode.BALANCED)


@pytest.fixture
def unsafe(backend):
    return FilesRpcDispatcher(backend, SafetyMode.UNSAFE)


class TestProtocol:
    def test_initialize(self, read_only):
        response = call(read_only, {"jsonrpc": "2.0", "id": 0, "method": "initialize"})

        result = response["result"]
        assert response["id"] == 0
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert result["serverInfo"]["name"] == SERVER_NAME
        assert "tools" in result["capabilities"]

    def test_tools_list_advertises_annotations(self, read_only):
        response = call(read_only, {"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

        tools = {t["name"]: t for t in response["result"]["tools"]}
        assert sorted(tools) == [
            "files_delete",
            "files_download",
            "files_get",
            "files_list",
            "files_upload",
        ]
        assert tools["files_list"]["annotations"]["readOnlyHint"] is True
        assert tools["files_delete"]["annotations"]["destructiveHint"] is True
        assert tools["files_download"]["inputSchema"]["required"] == ["name", "outputPath"]

    def test_notification_gets_no_response(self, read_only):
        message = {"jsonrpc": "2.0", "method": "notifications/initialized"}

        assert call(read_only, message) is None

    def test_notification_for_tool_call_is_not_executed(self, unsafe, backend):
        message = {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "params": {"name": "files_delete", "arguments": {"name": "files/1"}},
        }

        assert call(unsafe, message) is None
        assert backend.calls == []

    def test_unknown_method(self, read_only):
        response = call(read_only, {"jsonrpc": "2.0", "id": 5, "method": "resources/list"})

        assert response["error"]["code"] == -32601
        assert response["id"] == 5

    @pytest.mark.parametrize("message", [[1, 2], "hello", {"id": 3}, {"id": 3, "method": 7}])
    def test_invalid_request(self, read_only, message):
        response = call(read_only, message)

        assert response["error"]["code"] == -32600


class TestSafetyGate:
    def test_balanced_delete_without_confirm_is_denied(self, balanced, backend):
        response = tool_call(balanced, "files_delete", {"name": "x"})

        error = response["error"]
        assert error["code"] == -32000
        assert error["data"]["code"] == "VALIDATION_ERROR"
        assert error["data"]["retryable"] is False
        assert "confirm=true" in error["message"]
        assert backend.calls == []

    def test_balanced_delete_with_confirm(self, balanced, backend):
        response = tool_call(balanced, "files_delete", {"name": "1", "confirm": True})

        assert response["result"]["structuredContent"] == {"ok": True}
        assert backend.calls == [("delete", ("1",))]

    def test_confirm_must_be_boolean_true(self, balanced, backend):
        response = tool_call(balanced, "files_delete", {"name": "1", "confirm": "true"})

        assert response["error"]["data"]["code"] == "VALIDATION_ERROR"
        assert backend.calls == []

    @pytest.mark.parametrize(
        "name,arguments",
        [
            ("files_upload", {"path": "/tmp/a.txt", "confirm": True}),
            ("files_delete", {"name": "files/1", "confirm": True}),
            ("files_download", {"name": "files/1", "outputPath": "/tmp/o", "confirm": True}),
        ],
    )
    def test_read_only_blocks_writes_even_when_confirmed(self, read_only, backend, name, arguments):
        response = tool_call(read_only, name, arguments)

        data = response["error"]["data"]
        assert data["code"] == "VALIDATION_ERROR"
        assert data["details"]["reason_code"] == "READ_ONLY_MODE"
        assert backend.calls == []

    def test_gate_runs_before_argument_validation(self, read_only, backend):
        response = tool_call(read_only, "files_delete", {})

        assert response["error"]["data"]["details"]["reason_code"] == "READ_ONLY_MODE"

    def test_read_only_allows_reads(self, read_only, backend):
        response = tool_call(read_only, "files_get", {"name": "abc"})

        assert response["result"]["structuredContent"]["file"]["name"] == "files/abc"
        assert backend.operations == ["get"]

    def test_unsafe_allows_writes_without_confirm(self, unsafe, backend):
        response = tool_call(
            unsafe, "files_upload", {"path": "/tmp/a.txt", "displayName": "A"}
        )

        file = response["result"]["structuredContent"]["file"]
        assert file["displayName"] == "A"
        assert backend.calls == [("upload", ("/tmp/a.txt", "A", None))]


class TestToolCalls:
    def test_list_result_carries_text_and_structured_content(self, read_only, backend):
        backend.next_page_token = "next"

        result = tool_call(read_only, "files_list", {"pageSize": 2})["result"]

        assert result["structuredContent"] == {
            "files": [{"name": "files/1"}, {"name": "files/2"}],
            "nextPageToken": "next",
        }
        assert result["content"][0]["type"] == "text"
        assert json.loads(result["content"][0]["text"]) == result["structuredContent"]
        assert backend.calls == [("list", (2, None))]

    def test_list_without_arguments(self, read_only, backend):
        result = tool_call(read_only, "files_list")["result"]

        assert len(result["structuredContent"]["files"]) == 2
        assert "nextPageToken" not in result["structuredContent"]

    @pytest.mark.parametrize("page_size", [0, -3, "ten"])
    def test_invalid_page_size(self, read_only, backend, page_size):
        response = tool_call(read_only, "files_list", {"pageSize": page_size})

        assert response["error"]["data"]["code"] == "VALIDATION_ERROR"
        assert "pageSize" in response["error"]["message"]
        assert backend.calls == []

    def test_missing_required_argument(self, read_only, backend):
        response = tool_call(read_only, "files_get", {})

        assert response["error"]["data"]["code"] == "VALIDATION_ERROR"
        assert response["error"]["message"].startswith("Invalid arguments")
        assert backend.calls == []

    def test_unknown_tool(self, read_only):
        response = tool_call(read_only, "files_rename", {})

        assert response["error"]["data"]["code"] == "VALIDATION_ERROR"
        assert "files_rename" in response["error"]["message"]

    def test_arguments_must_be_object(self, read_only):
        response = tool_call(read_only, "files_get", ["files/1"])

        assert response["error"]["data"]["code"] == "VALIDATION_ERROR"

    def test_download_writes_output(self, unsafe, tmp_path):
        output = tmp_path / "out.bin"

        response = tool_call(
            unsafe, "files_download", {"name": "files/1", "outputPath": str(output)}
        )

        assert response["result"]["structuredContent"] == {
            "outputPath": str(output),
            "sizeBytes": 4,
        }
        assert output.read_bytes() == b"data"


class TestBackendErrors:
    def test_forbidden_maps_to_auth_error(self, read_only, backend):
        backend.fail("list", StatusError("API key not valid", 403))

        data = tool_call(read_only, "files_list")["error"]["data"]

        assert data["code"] == "AUTH_ERROR"
        assert data["retryable"] is False
        assert data["message"] == "API key not valid"
        assert data["details"]["status"] == 403

    @pytest.mark.parametrize("status,retryable", [(429, True), (503, True), (404, False)])
    def test_status_maps_to_api_error(self, read_only, backend, status, retryable):
        backend.fail("get", StatusError("nope", status))

        data = tool_call(read_only, "files_get", {"name": "files/1"})["error"]["data"]

        assert data["code"] == "API_ERROR"
        assert data["retryable"] is retryable

    def test_unclassified_failure_is_internal(self, read_only, backend):
        backend.fail("get", RuntimeError("boom"))

        response = tool_call(read_only, "files_get", {"name": "files/1"})

        assert response["error"]["code"] == -32000
        assert response["error"]["data"]["code"] == "INTERNAL_ERROR"
