"""MCP tool adapter for agent-reach.

Exposes registry operations (register, lookup, deregister, status, whoami)
to an agent over the Model Context Protocol, JSON-RPC 2.0 on stdio.

Example:
    >>> from reach.mcp import ReachTools, build_server
    >>> server = build_server(ReachTools(client))  # doctest: +SKIP
    >>> # asyncio.run(server.serve_stdio())
"""

from reach.mcp.identity import IdentityError, load_identity, save_identity
from reach.mcp.protocol import MCP_PROTOCOL_VERSION
from reach.mcp.server import MCPServer
from reach.mcp.tools import ReachTools, build_server

__all__ = [
    "IdentityError",
    "MCPServer",
    "MCP_PROTOCOL_VERSION",
    "ReachTools",
    "build_server",
    "load_identity",
    "save_identity",
]
