"""Constants for agent-reach.

Protocol-wide values shared by the server, the handshake engine and the
client side.
"""

# Handshake protocol version and message type tags
PROTOCOL_VERSION = "1.0"
MSG_TYPE_HELLO = "hello"
MSG_TYPE_CHALLENGE = "challenge"
MSG_TYPE_PROOF = "proof"

# DID scheme accepted by the registry
DID_KEY_PREFIX = "did:key:"

# Multibase prefix for base58btc
MULTIBASE_BASE58BTC = "z"

# Multicodec varint prefix for an Ed25519 public key (0xed)
ED25519_MULTICODEC_PREFIX = b"\xed\x01"

ED25519_PUBLIC_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64

# Registry entry lifetime
DEFAULT_TTL_SECONDS = 3600
MAX_TTL_SECONDS = 30 * 24 * 3600

SESSION_TTL_SECONDS = 300
"""Fixed validity window of a bearer session.

Sessions are never renewed; after this window the holder must complete a
new Hello/Proof handshake.
"""

# Random identifier sizes (bytes before base64url encoding)
NONCE_BYTES = 32
SESSION_ID_BYTES = 32

# Identifier this service puts in the challenge audience field
DEFAULT_AUDIENCE = "agent-reach"

BEARER_PREFIX = "Bearer "
