"""Stdio MCP server hosting the reach tools.

Reads one JSON-RPC message per line from stdin and writes one response per
line to stdout. Logs go to stderr so they never interleave with protocol
traffic. Supported methods: initialize, tools/list, tools/call and ping.
"""

from __future__ import annotations

import asyncio
import inspect
import io
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import jsonschema
from pydantic import ValidationError

from reach.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    CallToolRequestParams,
    CallToolResult,
    Implementation,
    InitializeResult,
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    ListToolsResult,
    Tool,
)
from reach.observability import get_logger, is_debug_mode

logger = get_logger(__name__)

EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "additionalProperties": False}


class RPCError(Exception):
    """Turns into a JSON-RPC error response for the current request."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    func: Callable[..., Any]
    input_schema: dict[str, Any]
    description: str
    title: str | None = None

    def describe(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
            title=self.title,
        )


class MCPServer:
    """Minimal MCP server: a tool table behind a stdio JSON-RPC loop.

    Example:
        >>> server = MCPServer(name="agent-reach-mcp", version="0.1.0")
        >>> server.register_tool("reach_whoami", lambda: "did:key:z...", EMPTY_INPUT_SCHEMA)
        >>> # asyncio.run(server.serve_stdio())
    """

    def __init__(
        self,
        name: str,
        version: str,
        *,
        description: str | None = None,
        instructions: str | None = None,
    ) -> None:
        self._server_info = Implementation(name=name, version=version, description=description)
        self._instructions = instructions
        self._tools: dict[str, RegisteredTool] = {}
        self._methods: dict[str, Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]] = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "ping": self._ping,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def register_tool(
        self,
        name: str,
        func: Callable[..., Any],
        schema: dict[str, Any] | None = None,
        *,
        description: str = "",
        title: str | None = None,
    ) -> None:
        """Expose ``func`` as a tool. Arguments arrive as keyword arguments,
        already validated against ``schema``. ``func`` may be sync or async."""
        if name in self._tools:
            raise ValueError(f"tool {name!r} is already registered")
        self._tools[name] = RegisteredTool(
            name=name,
            func=func,
            input_schema=schema or EMPTY_INPUT_SCHEMA,
            description=description or f"Tool {name}",
            title=title,
        )

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        logger.info(
            "reach.mcp.initialize",
            client=params.get("clientInfo"),
            protocol_version=params.get("protocolVersion"),
        )
        result = InitializeResult(
            protocolVersion=MCP_PROTOCOL_VERSION,
            capabilities={"tools": {"listChanged": False}} if self._tools else {},
            serverInfo=self._server_info,
            instructions=self._instructions,
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    async def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        result = ListToolsResult(tools=[tool.describe() for tool in self._tools.values()])
        return result.model_dump(by_alias=True, exclude_none=True)

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            call = CallToolRequestParams.model_validate(params)
        except ValidationError as e:
            raise RPCError(INVALID_PARAMS, f"Invalid params: {e}") from e

        tool = self._tools.get(call.name)
        if tool is None:
            result = CallToolResult.text(f"Unknown tool: {call.name}", is_error=True)
            return result.model_dump(by_alias=True, exclude_none=True)

        try:
            jsonschema.validate(instance=call.arguments, schema=tool.input_schema)
        except jsonschema.ValidationError as e:
            raise RPCError(INVALID_PARAMS, f"Invalid arguments: {e.message}") from e

        try:
            inspect.signature(tool.func).bind(**call.arguments)
        except TypeError as e:
            raise RPCError(INVALID_PARAMS, f"Tool argument mismatch: {e}") from e

        try:
            if inspect.iscoroutinefunction(tool.func):
                out = await tool.func(**call.arguments)
            else:
                out = tool.func(**call.arguments)
        except Exception as e:
            logger.exception("reach.mcp.tool_error", tool=call.name)
            message = str(e) if is_debug_mode() else "Internal tool error"
            result = CallToolResult.text(message, is_error=True)
            return result.model_dump(by_alias=True, exclude_none=True)

        text = out if isinstance(out, str) else json.dumps(out)
        return CallToolResult.text(text).model_dump(by_alias=True, exclude_none=True)

    async def handle_message(self, raw: dict[str, Any]) -> dict[str, Any] | None:
        """Process one decoded message; returns the response, or None for notifications."""
        if "id" not in raw:
            try:
                notification = JSONRPCNotification.model_validate(raw)
            except ValidationError as e:
                logger.debug("reach.mcp.bad_notification", error=str(e))
                return None
            logger.debug("reach.mcp.notification", method=notification.method)
            return None

        try:
            request = JSONRPCRequest.model_validate(raw)
        except ValidationError:
            return self._error(raw.get("id"), INVALID_REQUEST, "Invalid request")

        method = self._methods.get(request.method)
        if method is None:
            return self._error(request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}")
        try:
            result = await method(request.params or {})
        except RPCError as e:
            return self._error(request.id, e.code, e.message)
        except Exception as e:
            logger.exception("reach.mcp.request_error", method=request.method)
            message = str(e) if is_debug_mode() else "Internal error"
            return self._error(request.id, INTERNAL_ERROR, message)
        return JSONRPCResponse(id=request.id, result=result).model_dump(by_alias=True)

    @staticmethod
    def _error(rid: Any, code: int, message: str) -> dict[str, Any]:
        if not isinstance(rid, (str, int)):
            rid = None
        response = JSONRPCErrorResponse(id=rid, error=JSONRPCError(code=code, message=message))
        return response.model_dump(by_alias=True)

    async def serve_stdio(
        self,
        stdin: io.TextIOBase | None = None,
        stdout: io.TextIOBase | None = None,
    ) -> None:
        """Serve until stdin closes. Requests are handled one at a time, in order."""
        _stdin = stdin if stdin is not None else sys.stdin
        _stdout = stdout if stdout is not None else sys.stdout
        loop = asyncio.get_running_loop()

        def write(message: dict[str, Any]) -> None:
            _stdout.write(json.dumps(message, ensure_ascii=False) + "\n")
            _stdout.flush()

        def read_line() -> str:
            try:
                return _stdin.readline()
            except (EOFError, OSError) as e:
                logger.debug("reach.mcp.transport_closed", reason=str(e))
                return ""

        logger.info("reach.mcp.ready", server=self._server_info.name, tools=self.tool_names)
        while True:
            line = await loop.run_in_executor(None, read_line)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError:
                write(self._error(None, PARSE_ERROR, "Parse error"))
                continue
            if not isinstance(raw, dict):
                write(self._error(None, INVALID_REQUEST, "Invalid request"))
                continue
            response = await self.handle_message(raw)
            if response is not None:
                write(response)
        logger.info("reach.mcp.stdin_closed")


__all__ = ["EMPTY_INPUT_SCHEMA", "MCPServer", "RPCError", "RegisteredTool"]
