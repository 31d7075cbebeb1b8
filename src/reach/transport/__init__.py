"""HTTP surface of agent-reach: the FastAPI registry server and its async client."""

from reach.transport.client import ReachClient, ReachClientError, ReachConnectionError
from reach.transport.handlers import RegistryService, extract_bearer_token
from reach.transport.server import create_app

__all__ = [
    "ReachClient",
    "ReachClientError",
    "ReachConnectionError",
    "RegistryService",
    "create_app",
    "extract_bearer_token",
]
