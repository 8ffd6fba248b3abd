"""JSON-RPC 2.0 tool-call server over line-delimited stdio.

Handles ``initialize``, ``ping``, ``tools/list`` and ``tools/call``.
Requests without an ``id`` are notifications and never get a response.

Error mapping:
    -32700  request line is not valid JSON
    -32600  request is not a JSON-RPC object
    -32601  unknown method or unknown tool
    -32602  tool arguments do not match the tool's signature
    -32603  the task core (or anything else) failed; message is the error text
"""

import json
import sys
from typing import Any, Callable, TextIO

from tasklane.constants import PROTOCOL_VERSION, VERSION
from tasklane.errors import TasklaneError
from tasklane.logging import Loggers
from tasklane.tools import ToolArgumentError, ToolRegistry, UnknownToolError, get_registry

logger = Loggers.rpc()

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RpcError(Exception):
    """A JSON-RPC error to be returned to the caller."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def _response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error_response(request_id: Any, error: RpcError) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": error.to_dict()}


class RpcServer:
    """Dispatches JSON-RPC requests to the tool registry.

    Example:
        >>> server = RpcServer()
        >>> server.handle_message('{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}')
    """

    def __init__(self, registry: ToolRegistry | None = None, name: str = "tasklane") -> None:
        self._registry = registry or get_registry()
        self._name = name
        self._methods: dict[str, Callable[[dict[str, Any]], Any]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    # ---- methods ----

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        logger.info("rpc_initialize", client=params.get("clientInfo"))
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": self._name, "version": VERSION},
        }

    def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self._registry.list_tools()]}

    def _call_tool(self, params: dict[str, Any]) -> Any:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise RpcError(INVALID_PARAMS, "tools/call requires a tool name")

        logger.debug("tool_call", tool=name)
        try:
            return self._registry.call(name, params.get("arguments"))
        except UnknownToolError as e:
            raise RpcError(METHOD_NOT_FOUND, e.message) from e
        except ToolArgumentError as e:
            raise RpcError(INVALID_PARAMS, e.message, data=e.to_dict()) from e
        except TasklaneError as e:
            logger.info("tool_call_failed", tool=name, code=e.code, error=e.message)
            raise RpcError(INTERNAL_ERROR, e.message, data=e.to_dict()) from e

    # ---- dispatch ----

    def handle_request(self, request: Any) -> dict[str, Any] | None:
        """Handle one decoded request; returns None for notifications."""
        if not isinstance(request, dict) or not isinstance(request.get("method"), str):
            request_id = request.get("id") if isinstance(request, dict) else None
            return _error_response(request_id, RpcError(INVALID_REQUEST, "invalid request"))

        is_notification = "id" not in request
        request_id = request.get("id")
        method = request["method"]
        params = request.get("params") or {}

        try:
            if not isinstance(params, dict):
                raise RpcError(INVALID_PARAMS, "params must be an object")
            handler = self._methods.get(method)
            if handler is None:
                if is_notification:
                    logger.debug("rpc_notification", method=method)
                    return None
                raise RpcError(METHOD_NOT_FOUND, f"method not found: {method}")
            result = handler(params)
        except RpcError as e:
            if is_notification:
                return None
            return _error_response(request_id, e)
        except Exception as e:
            logger.exception("rpc_internal_error", method=method)
            if is_notification:
                return None
            return _error_response(request_id, RpcError(INTERNAL_ERROR, str(e)))

        if is_notification:
            return None
        return _response(request_id, result)

    def handle_message(self, line: str) -> str | None:
        """Handle one raw request line; returns the encoded response, if any."""
        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("rpc_parse_error", error=str(e))
            return json.dumps(_error_response(None, RpcError(PARSE_ERROR, f"parse error: {e}")))

        response = self.handle_request(request)
        if response is None:
            return None
        return json.dumps(response, ensure_ascii=False)

    def serve(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Read requests line by line until EOF, writing one response line each."""
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout
        logger.info("rpc_server_starting", tools=len(self._registry))

        for line in stdin:
            line = line.strip()
            if not line:
                continue
            response = self.handle_message(line)
            if response is not None:
                stdout.write(response + "\n")
                stdout.flush()

        logger.info("rpc_server_stopped")
