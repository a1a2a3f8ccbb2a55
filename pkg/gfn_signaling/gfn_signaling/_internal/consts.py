"""
Constants for the signaling protocol.
"""

import typing

import websockets

# ============================================================================
# Session identity
# ============================================================================

# Fixed peer IDs. The server is always peer 1 and we are always peer 2.
LOCAL_PEER_ID: typing.Final = 2
REMOTE_PEER_ID: typing.Final = 1

# Upper bound (exclusive) for the random number in the peer name
PEER_NAME_SPACE: typing.Final = 10_000_000_000

# Subprotocol prefix. The session token is appended to it.
SUBPROTOCOL_PREFIX: typing.Final = "x-nv-sessionid."

SIGN_IN_PATH: typing.Final = "nvst/sign_in"
PROTOCOL_VERSION: typing.Final = 2
DEFAULT_PORT: typing.Final = 443

ORIGIN: typing.Final = websockets.Origin("https://play.geforcenow.com")
USER_AGENT: typing.Final = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/131.0.0.0 Safari/537.36"
)

# Presence metadata announced in the peer info block
BROWSER: typing.Final = "Chrome"
BROWSER_VERSION: typing.Final = "131"
PEER_ROLE: typing.Final = 0
RESOLUTION: typing.Final = "1920x1080"

# ============================================================================
# Timing
# ============================================================================

# Interval between application heartbeats ({"hb": 1}) (seconds)
HEARTBEAT_INTERVAL_SEC: typing.Final = 5.0

# Interval between transport-level pings (seconds)
PING_INTERVAL_SEC: typing.Final = 15.0

# Handshake timeout passed to the transport (seconds)
DEFAULT_OPEN_TIMEOUT_SEC: typing.Final = 10.0

# ============================================================================
# Reconnection
# ============================================================================

MAX_RECONNECT_ATTEMPTS: typing.Final = 6
RECONNECT_BASE_DELAY_MS: typing.Final = 1000
RECONNECT_MAX_DELAY_MS: typing.Final = 30_000
RECONNECT_JITTER_MS: typing.Final = 400

# Close codes that mean the server hung up on purpose
CLEAN_CLOSE_CODES: typing.Final = frozenset([1000, 1001])

# Close code used when the connection went away without a close frame
ABNORMAL_CLOSE_CODE: typing.Final = 1006

# ============================================================================
# Sizes
# ============================================================================

MAX_MESSAGE_SIZE: typing.Final = 5 * 1024 * 1024  # 5 MB

# Max characters of a raw frame quoted in diagnostic logs
RAW_PREVIEW_CHARS: typing.Final = 120

# Max characters of an SDP quoted in debug logs
SDP_PREVIEW_CHARS: typing.Final = 500
