from .base import wait_for, wait_for_len, wait_for_truthy
from .ws_server import FakeRelayServer, Handshake, closed_port

__all__ = [
    "FakeRelayServer",
    "Handshake",
    "closed_port",
    "wait_for",
    "wait_for_len",
    "wait_for_truthy",
]
