"""The reach_* tools: registry operations for an agent speaking MCP.

Every tool answers with a short text line: ``✓`` on success, ``✗`` on
failure and ``○`` for "not registered". Registry and network failures are
reported in that text rather than as tool errors, so the calling model sees
the registry's own error message.
"""

from __future__ import annotations

from typing import Any

import reach
from reach.mcp.server import EMPTY_INPUT_SCHEMA, MCPServer
from reach.models.constants import MAX_TTL_SECONDS
from reach.observability import get_logger
from reach.transport.client import ReachClient, ReachClientError, ReachConnectionError

logger = get_logger(__name__)

SERVER_NAME = "agent-reach-mcp"
SERVER_INSTRUCTIONS = (
    "MCP server for the agent-reach discovery registry. Lets agents register their "
    "endpoints, look up other agents, and manage their presence in the registry."
)

REGISTER_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "endpoint": {
            "type": "string",
            "minLength": 1,
            "description": "Endpoint URL where your agent can be reached "
            "(e.g. https://example.com/agent/inbox)",
        },
        "ttl": {
            "type": "integer",
            "minimum": 1,
            "maximum": MAX_TTL_SECONDS,
            "description": "Registration lifetime in seconds (default 3600)",
        },
    },
    "required": ["endpoint"],
    "additionalProperties": False,
}

LOOKUP_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "did": {
            "type": "string",
            "minLength": 1,
            "description": "DID of the agent to look up (e.g. did:key:z6Mk...)",
        },
    },
    "required": ["did"],
    "additionalProperties": False,
}

_FAILURES = (ReachClientError, ReachConnectionError)


def _reason(error: Exception) -> str:
    if isinstance(error, ReachClientError):
        if error.status_code == 404:
            return "Agent not found in registry"
        return error.error
    return str(error)


class ReachTools:
    """Tool implementations bound to one identity and one registry."""

    def __init__(self, client: ReachClient) -> None:
        if client.did is None:
            raise ValueError("ReachTools needs a client constructed with a Prover")
        self._client = client
        self._did: str = client.did

    @property
    def did(self) -> str:
        return self._did

    async def register(self, endpoint: str, ttl: int | None = None) -> str:
        try:
            await self._client.register(endpoint, ttl)
        except _FAILURES as e:
            logger.warning("reach.mcp.register_failed", did=self._did, error=_reason(e))
            return f"✗ Registration failed: {_reason(e)}"
        return f"✓ Registered {self._did} at endpoint: {endpoint}"

    async def lookup(self, did: str) -> str:
        try:
            entry = await self._client.lookup(did)
        except _FAILURES as e:
            return f"✗ Lookup failed: {_reason(e)}"
        return f"✓ Found {did}\n  Endpoint: {entry.endpoint}"

    async def deregister(self) -> str:
        try:
            await self._client.deregister()
        except _FAILURES as e:
            logger.warning("reach.mcp.deregister_failed", did=self._did, error=_reason(e))
            return f"✗ Deregistration failed: {_reason(e)}"
        return f"✓ Deregistered {self._did}"

    async def status(self) -> str:
        try:
            entry = await self._client.lookup(self._did)
        except _FAILURES:
            return f"○ Not registered\n  DID: {self._did}"
        return (
            f"✓ Registered\n  DID: {self._did}\n  Endpoint: {entry.endpoint}\n"
            f"  Expires at: {entry.expires_at}"
        )

    def whoami(self) -> str:
        return f"Your DID: {self._did}"


def build_server(tools: ReachTools) -> MCPServer:
    """MCP server exposing ``tools`` as reach_register, reach_lookup, reach_deregister,
    reach_status and reach_whoami."""
    server = MCPServer(
        name=SERVER_NAME,
        version=reach.__version__,
        description="Discovery registry tools for DID-identified agents",
        instructions=SERVER_INSTRUCTIONS,
    )
    server.register_tool(
        "reach_register",
        tools.register,
        REGISTER_SCHEMA,
        description="Register your agent's endpoint in the discovery registry. "
        "Other agents will be able to find you at this endpoint.",
        title="Register endpoint",
    )
    server.register_tool(
        "reach_lookup",
        tools.lookup,
        LOOKUP_SCHEMA,
        description="Look up another agent's endpoint by their DID.",
        title="Look up agent",
    )
    server.register_tool(
        "reach_deregister",
        tools.deregister,
        EMPTY_INPUT_SCHEMA,
        description="Remove your agent's registration from the discovery registry.",
        title="Deregister",
    )
    server.register_tool(
        "reach_status",
        tools.status,
        EMPTY_INPUT_SCHEMA,
        description="Check your current registration status in the discovery registry.",
        title="Registration status",
    )
    server.register_tool(
        "reach_whoami",
        tools.whoami,
        EMPTY_INPUT_SCHEMA,
        description="Show the DID this agent uses for the registry.",
        title="Who am I",
    )
    return server


__all__ = ["LOOKUP_SCHEMA", "REGISTER_SCHEMA", "ReachTools", "build_server"]
