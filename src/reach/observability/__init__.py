"""Observability module for agent-reach.

Structured logging (structlog) shared by the server, the client and the
MCP tool adapter.

Example:
    >>> from reach.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("reach.lookup", did="did:key:z6Mk...")
"""

from reach.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "sanitize_for_logging",
]
