"""agent-reach: DID-authenticated discovery registry for autonomous agents.

Agents prove ownership of a ``did:key`` identity through a challenge-response
handshake, then publish the endpoint where they can be reached. Other agents
resolve that endpoint by DID.
"""

__version__ = "0.1.0"
