from __future__ import annotations

import dataclasses
import json
import typing

import websockets
import websockets.asyncio.server

from .base import wait_for
from .net import HOST, get_available_port

_Connection = websockets.asyncio.server.ServerConnection


@dataclasses.dataclass
class Handshake:
    # Lowercased header names
    headers: dict[str, str]
    path: str
    subprotocol: str | None


class FakeRelayServer:
    """
    In-process stand-in for the signaling relay. Records handshakes and every
    frame received from clients, and lets tests push frames or drop
    connections.
    """

    def __init__(self) -> None:
        self._conns: list[_Connection] = []
        self._port = get_available_port()
        self._server: websockets.asyncio.server.Server | None = None
        self.handshakes: list[Handshake] = []

        # Raw text frames received from clients, in order
        self.received: list[str] = []

    @property
    def address(self) -> str:
        return f"{HOST}:{self._port}"

    @property
    def connection_count(self) -> int:
        return len(self._conns)

    @property
    def received_json(self) -> list[dict[str, typing.Any]]:
        return [json.loads(raw) for raw in self.received]

    def received_where(self, key: str) -> list[dict[str, typing.Any]]:
        return [msg for msg in self.received_json if key in msg]

    def rewrite_endpoint(self, url: str) -> str:
        """
        Clients always dial wss://. The fake server speaks plain ws://.
        """

        return url.replace("wss://", "ws://", 1)

    async def start(self) -> None:
        self._server = await websockets.serve(
            self._handle_client,
            HOST,
            self._port,
            select_subprotocol=_echo_subprotocol,
        )

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()

    async def wait_for_clients(
        self,
        *,
        handshakes: int = 1,
        connected: int = 1,
    ) -> None:
        """
        Wait until the server has seen the given number of handshakes in total
        and holds the given number of live connections. The client side of a
        handshake can finish before the server registers the connection.
        """

        def assertion() -> None:
            assert len(self.handshakes) == handshakes
            assert self.connection_count == connected

        await wait_for(assertion)

    async def send(self, message: str | dict[str, typing.Any]) -> None:
        """
        Send a frame to every connected client.
        """

        if not isinstance(message, str):
            message = json.dumps(message)

        for conn in list(self._conns):
            await conn.send(message)

    async def close_with_code(self, code: int, reason: str = "") -> None:
        for conn in list(self._conns):
            await conn.close(code, reason)

    async def abort_conns(self) -> None:
        """
        Abort connections at the transport level. This causes an abnormal
        close (no close frame) on the client.
        """

        for conn in list(self._conns):
            conn.transport.abort()

    async def _handle_client(self, conn: _Connection) -> None:
        request = conn.request
        self.handshakes.append(
            Handshake(
                headers=dict(request.headers) if request else {},
                path=request.path if request else "",
                subprotocol=conn.subprotocol,
            )
        )
        self._conns.append(conn)
        try:
            async for message in conn:
                if isinstance(message, bytes):
                    message = message.decode()
                self.received.append(message)
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self._conns.remove(conn)


def _echo_subprotocol(
    conn: _Connection,
    subprotocols: typing.Sequence[websockets.Subprotocol],
) -> websockets.Subprotocol | None:
    if len(subprotocols) == 0:
        return None
    return subprotocols[0]


def closed_port() -> str:
    """
    Address with nothing listening on it.
    """

    return f"{HOST}:{get_available_port()}"
