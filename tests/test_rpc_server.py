"""Tests for the JSON-RPC tool-call server."""

import io
import json

import pytest

from tasklane.boards.registry import BoardHandle
from tasklane.constants import PROTOCOL_VERSION, VERSION
from tasklane.rpc.server import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    RpcServer,
)


def request(method: str, params=None, request_id=1) -> dict:
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def tool_call(name: str, arguments=None, request_id=1) -> dict:
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return request("tools/call", params, request_id)


@pytest.fixture
def server() -> RpcServer:
    return RpcServer()


class TestProtocol:
    """Tests for the protocol-level methods."""

    def test_initialize(self, server: RpcServer):
        response = server.handle_request(
            request("initialize", {"clientInfo": {"name": "test-client"}})
        )

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        result = response["result"]
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert result["capabilities"] == {"tools": {}}
        assert result["serverInfo"] == {"name": "tasklane", "version": VERSION}

    def test_ping(self, server: RpcServer):
        assert server.handle_request(request("ping", request_id="abc")) == {
            "jsonrpc": "2.0",
            "id": "abc",
            "result": {},
        }

    def test_tools_list(self, server: RpcServer):
        tools = server.handle_request(request("tools/list"))["result"]["tools"]

        assert len(tools) == 15
        by_name = {tool["name"]: tool for tool in tools}
        assert set(by_name["link_tasks"]["inputSchema"]["required"]) == {
            "from_task_id",
            "to_task_id",
            "link_type",
        }
        assert all(tool["description"] for tool in tools)

    def test_unknown_method(self, server: RpcServer):
        response = server.handle_request(request("resources/list"))
        assert response["error"]["code"] == METHOD_NOT_FOUND
        assert "resources/list" in response["error"]["message"]

    def test_notifications_get_no_response(self, server: RpcServer):
        assert server.handle_request({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
        assert server.handle_request({"jsonrpc": "2.0", "method": "ping"}) is None

    @pytest.mark.parametrize("message", [[], "ping", 42, {"jsonrpc": "2.0", "id": 3}])
    def test_invalid_request(self, server: RpcServer, message):
        response = server.handle_request(message)
        assert response["error"]["code"] == INVALID_REQUEST

    def test_params_must_be_an_object(self, server: RpcServer):
        response = server.handle_request(request("tools/call", ["create_task"]))
        assert response["error"]["code"] == INVALID_PARAMS


class TestToolCalls:
    """Tests for tools/call and its error mapping."""

    def test_success(self, server: RpcServer, tool_board: BoardHandle):
        response = server.handle_request(tool_call("create_task", {"title": "Fix login bug"}))

        result = response["result"]
        assert result["task"]["id"] == 1
        assert result["content"] == [{"type": "text", "text": "Created task #1: Fix login bug"}]

    def test_missing_tool_name(self, server: RpcServer):
        response = server.handle_request(request("tools/call", {"arguments": {}}))
        assert response["error"]["code"] == INVALID_PARAMS

    def test_unknown_tool(self, server: RpcServer, tool_board: BoardHandle):
        response = server.handle_request(tool_call("drop_tables", {}))

        assert response["error"]["code"] == METHOD_NOT_FOUND
        assert response["error"]["message"] == "unknown tool: drop_tables"

    def test_invalid_arguments(self, server: RpcServer, tool_board: BoardHandle):
        response = server.handle_request(tool_call("get_task", {"task_id": "1"}))

        assert response["error"]["code"] == INVALID_PARAMS
        assert "task_id" in response["error"]["message"]
        assert response["error"]["data"]["code"] == "INVALID_ARGUMENTS"

    def test_core_error_message_is_passed_through(self, server: RpcServer, tool_board: BoardHandle):
        response = server.handle_request(
            tool_call("link_tasks", {"from_task_id": 5, "to_task_id": 5, "link_type": "blocks"})
        )

        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"] == "cannot link task to itself"
        assert response["error"]["data"]["code"] == "VALIDATION_FAILED"

    def test_not_found(self, server: RpcServer, tool_board: BoardHandle):
        response = server.handle_request(tool_call("get_task", {"task_id": 404}))

        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"] == "task with id 404 not found"

    def test_json_float_priority(self, server: RpcServer, tool_board: BoardHandle):
        line = json.dumps(tool_call("create_task", {"title": "Ship it", "priority": 3.0}))
        assert '"priority": 3.0' in line

        response = json.loads(server.handle_message(line))

        assert response["result"]["task"]["priority"] == 3

    def test_task_id_beyond_storage_range(self, server: RpcServer, tool_board: BoardHandle):
        response = server.handle_request(tool_call("get_task", {"task_id": 10**20}))

        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["data"]["code"] == "STORAGE_ERROR"

    def test_notification_tool_call_runs_silently(self, server: RpcServer, tool_board: BoardHandle):
        message = tool_call("create_task", {"title": "Fire and forget"})
        del message["id"]

        assert server.handle_request(message) is None
        assert [t.title for t in tool_board.service.list_tasks(1)] == ["Fire and forget"]


class TestMessages:
    """Tests for line handling and the stdio loop."""

    def test_parse_error(self, server: RpcServer):
        response = json.loads(server.handle_message("{not json"))

        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    def test_handle_message_round_trip(self, server: RpcServer):
        response = json.loads(server.handle_message(json.dumps(request("ping", request_id=7))))
        assert response == {"jsonrpc": "2.0", "id": 7, "result": {}}

    def test_serve(self, server: RpcServer, tool_board: BoardHandle):
        lines = [
            json.dumps(request("initialize", {}, request_id=1)),
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            "",
            json.dumps(tool_call("create_task", {"title": "Backend", "priority": "high"}, 2)),
            json.dumps(tool_call("create_task", {"title": "Frontend"}, 3)),
            json.dumps(
                tool_call(
                    "link_tasks",
                    {"from_task_id": 1, "to_task_id": 2, "link_type": "blocks"},
                    4,
                )
            ),
            "garbage",
            json.dumps(tool_call("list_tasks", {}, 5)),
        ]
        stdin = io.StringIO("\n".join(lines) + "\n")
        stdout = io.StringIO()

        server.serve(stdin=stdin, stdout=stdout)

        responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [r.get("id") for r in responses] == [1, 2, 3, 4, None, 5]
        assert responses[3]["result"]["content"][0]["text"] == "Linked task 1 blocks task 2"
        assert responses[4]["error"]["code"] == PARSE_ERROR
        assert [block["text"] for block in responses[5]["result"]["content"]] == [
            "\nTODO:",
            "• #1 [high] Backend",
            "• #2 Frontend",
        ]

    def test_serve_keeps_unicode(self, server: RpcServer, tool_board: BoardHandle):
        stdin = io.StringIO(json.dumps(tool_call("create_task", {"title": "Café ☕"})) + "\n")
        stdout = io.StringIO()

        server.serve(stdin=stdin, stdout=stdout)

        assert "Café ☕" in stdout.getvalue()
