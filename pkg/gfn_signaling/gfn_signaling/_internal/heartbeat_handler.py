from __future__ import annotations

import asyncio

from . import codec, types
from .base_handler import Transport, _BaseHandler
from .models import Envelope


class _HeartbeatHandler(_BaseHandler):
    """
    Keeps the connection alive and answers server heartbeats.

    Two independent timers run while a connection is open: the application
    heartbeat ({"hb": 1}) that the server expects, and a transport-level ping
    for intermediaries that silently drop idle connections.
    """

    _heartbeat_sender_task: asyncio.Task[None] | None = None
    _pinger_task: asyncio.Task[None] | None = None

    def __init__(
        self,
        logger: types.Logger,
        transport: Transport,
        *,
        heartbeat_interval: float,
        ping_interval: float,
    ) -> None:
        self._heartbeat_interval = heartbeat_interval
        self._logger = logger
        self._ping_interval = ping_interval
        self._transport = transport

    @property
    def running(self) -> bool:
        return self._heartbeat_sender_task is not None

    def start(self) -> None:
        self.stop()

        self._heartbeat_sender_task = asyncio.create_task(
            self._heartbeat_sender()
        )
        self._pinger_task = asyncio.create_task(self._pinger())

    def stop(self) -> None:
        if self._heartbeat_sender_task is not None:
            self._heartbeat_sender_task.cancel()
            self._heartbeat_sender_task = None

        if self._pinger_task is not None:
            self._pinger_task.cancel()
            self._pinger_task = None

    async def _heartbeat_sender(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            self._transport.send(codec.heartbeat())

    async def _pinger(self) -> None:
        while True:
            await asyncio.sleep(self._ping_interval)
            if self._transport.is_open():
                self._logger.debug("Sending ping")
                self._transport.ping()

    def handle_msg(self, msg: Envelope) -> None:
        if not msg.hb:
            return

        self._transport.send(codec.heartbeat())
