"""
Signaling client for peer-to-peer session negotiation.

The client keeps a persistent WebSocket connection to a relay server and
exchanges SDP offers/answers and ICE candidates with one remote peer. It
reconnects with exponential backoff when the connection drops, until the
caller disconnects.

It does not carry media or establish the peer-to-peer transport: consume the
"offer" and "remote ICE" events and feed answers and local candidates back
with ``send_answer`` and ``send_ice_candidate``.
"""

from ._internal.client import create_client
from ._internal.connection import SignalingClient
from ._internal.endpoint import Endpoint, resolve_endpoint
from ._internal.errors import ConnectError, SignalingError
from ._internal.events import (
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    Event,
    LogEvent,
    OfferEvent,
    RemoteIceEvent,
)
from ._internal.models import ConnectionState, IceCandidate, SessionIdentity
from ._internal.reconnect import ReconnectPolicy
from ._internal.types import EmptySentinel, empty_sentinel

__all__ = [
    "ConnectError",
    "ConnectedEvent",
    "ConnectionState",
    "DisconnectedEvent",
    "EmptySentinel",
    "Endpoint",
    "ErrorEvent",
    "Event",
    "IceCandidate",
    "LogEvent",
    "OfferEvent",
    "ReconnectPolicy",
    "RemoteIceEvent",
    "SessionIdentity",
    "SignalingClient",
    "SignalingError",
    "create_client",
    "empty_sentinel",
    "resolve_endpoint",
]
