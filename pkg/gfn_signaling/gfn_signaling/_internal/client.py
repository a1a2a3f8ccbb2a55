from __future__ import annotations

import logging
import random
import typing

from . import config_lib, consts, types
from .connection import SignalingClient, _WebSocketSignalingClient
from .reconnect import ReconnectPolicy


def create_client(
    signaling_server: str | None,
    session_id: str,
    *,
    signaling_url: str | None = None,
    logger: types.Logger | None = None,
    rewrite_endpoint: typing.Callable[[str], str] | None = None,
    reconnect_policy: ReconnectPolicy | None = None,
    heartbeat_interval: float = consts.HEARTBEAT_INTERVAL_SEC,
    ping_interval: float = consts.PING_INTERVAL_SEC,
    open_timeout: float | None = None,
    verify_tls: bool | None = None,
    max_message_size: int = consts.MAX_MESSAGE_SIZE,
    rng: random.Random | None = None,
) -> SignalingClient:
    """
    Create a signaling client. Nothing is opened until ``connect`` is called.

    Args:
    ----
        signaling_server: Server address (host, optionally with port). Falls back to the GFN_SIGNALING_SERVER env var.
        session_id: Session token embedded in the WebSocket subprotocol.
        signaling_url: Previously observed signaling URL. When set, its host and port win over signaling_server. Falls back to the GFN_SIGNALING_URL env var.
        logger: Logger to use. Defaults to the "gfn_signaling" logger.
        rewrite_endpoint: A function that rewrites the resolved URL before dialling.
        reconnect_policy: Backoff settings. Defaults to 6 attempts, 1s doubling up to 30s, plus up to 400ms of jitter.
        heartbeat_interval: Seconds between application heartbeats.
        ping_interval: Seconds between transport-level pings.
        open_timeout: Handshake timeout in seconds. Falls back to the GFN_SIGNALING_OPEN_TIMEOUT env var, then 10.
        verify_tls: Verify the server certificate. Falls back to the GFN_SIGNALING_VERIFY_TLS env var, then False.
        max_message_size: Largest inbound frame accepted, in bytes.
        rng: Random source for the peer name and backoff jitter.
    """

    server = config_lib.get_signaling_server(signaling_server)
    if isinstance(server, Exception):
        raise server

    return _WebSocketSignalingClient(
        signaling_server=server,
        session_id=session_id,
        signaling_url=config_lib.get_signaling_url(signaling_url),
        logger=logger or logging.getLogger("gfn_signaling"),
        rewrite_endpoint=rewrite_endpoint,
        reconnect_policy=reconnect_policy,
        heartbeat_interval=heartbeat_interval,
        ping_interval=ping_interval,
        open_timeout=config_lib.get_open_timeout(
            open_timeout, consts.DEFAULT_OPEN_TIMEOUT_SEC
        ),
        verify_tls=config_lib.get_verify_tls(verify_tls),
        max_message_size=max_message_size,
        rng=rng,
    )
