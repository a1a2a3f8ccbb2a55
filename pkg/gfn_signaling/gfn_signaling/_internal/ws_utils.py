from __future__ import annotations

import ssl
import typing

import websockets

from . import types


class _Ping:
    pass


# Outbox item that asks the writer for a transport-level ping
PING = _Ping()

OutboxItem = typing.Union[str, _Ping]


async def safe_send(
    logger: types.Logger,
    ws: websockets.ClientConnection,
    item: OutboxItem,
) -> types.MaybeError[None]:
    """
    Write a frame (or a ping) to the connection. If any error occurs, log and
    return the error. A closed connection is not logged as an error since the
    reader observes and reports the close.
    """

    try:
        if isinstance(item, _Ping):
            # Don't wait for the pong. A dead connection is reported by the
            # transport as a close.
            await ws.ping()
        else:
            await ws.send(item)
    except websockets.exceptions.ConnectionClosed as e:
        logger.debug("Send on closed connection", extra={"error": str(e)})
        return e
    except Exception as e:
        logger.error(f"Error sending message: {e!s}", extra={"error": str(e)})
        return e

    return None


def create_ssl_context(verify: bool) -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    if not verify:
        # Relay servers present certificates for a different name than the
        # address we dial.
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx
