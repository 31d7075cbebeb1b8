"""MCP wire types: JSON-RPC 2.0 envelopes and the initialize / tools messages.

Only the subset the reach tool adapter serves is modelled. Models use
extra="ignore" so newer clients can send fields this version does not know.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MCP_PROTOCOL_VERSION = "2025-11-25"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class MCPModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class JSONRPCError(MCPModel):
    code: int
    message: str
    data: Any = None


class JSONRPCRequest(MCPModel):
    """Request with an id; the server must answer it."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int
    method: str
    params: dict[str, Any] | None = None


class JSONRPCNotification(MCPModel):
    """Message without an id; never answered."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] | None = None


class JSONRPCResponse(MCPModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int
    result: dict[str, Any]


class JSONRPCErrorResponse(MCPModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None
    error: JSONRPCError


class Implementation(MCPModel):
    """serverInfo block of the initialize result."""

    name: str
    version: str
    title: str | None = None
    description: str | None = None


class InitializeResult(MCPModel):
    protocol_version: str = Field(default=MCP_PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    server_info: Implementation = Field(alias="serverInfo")
    instructions: str | None = None


class Tool(MCPModel):
    """One entry of tools/list."""

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")
    title: str | None = None


class ListToolsResult(MCPModel):
    tools: list[Tool] = Field(default_factory=list)


class TextContent(MCPModel):
    type: Literal["text"] = "text"
    text: str


class CallToolRequestParams(MCPModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class CallToolResult(MCPModel):
    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text(cls, text: str, *, is_error: bool = False) -> CallToolResult:
        return cls(content=[TextContent(text=text)], isError=is_error)
