"""
Owner of the signaling WebSocket connection.

Incoming frames are decoded once and dispatched to every registered handler.
Each handler is responsible for a specific concern:

    - AckHandler: Acknowledges frames that request it
    - HeartbeatHandler: Answers server heartbeats and keeps the connection
      alive while it's open
    - PeerMsgHandler: Emits offer and remote ICE events

Reconnection:
    An involuntary close (anything other than 1000/1001, including a failed
    connect) schedules a retry with exponential backoff, up to a fixed number
    of attempts. Closing via ``disconnect`` suppresses all retries.

Everything runs on a single event loop, so no locking is needed. Outbound
frames go through one writer task per connection to keep their order.
"""

from __future__ import annotations

import asyncio
import random
import typing

import websockets
from websockets.protocol import State as _WSState

from . import codec, consts, errors, types, ws_utils
from .ack_handler import _AckHandler
from .base_handler import _BaseHandler
from .endpoint import resolve_endpoint
from .events import (
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    EventPublisher,
    LogEvent,
    Subscriber,
)
from .heartbeat_handler import _HeartbeatHandler
from .models import ConnectionState, Envelope, IceCandidate, SessionIdentity
from .peer_msg_handler import _PeerMsgHandler
from .reconnect import ReconnectPolicy, _ReconnectController
from .value_watcher import ValueWatcher


class SignalingClient(typing.Protocol):
    """
    Connection between this endpoint and the signaling server, relaying
    negotiation messages to and from exactly one remote peer.
    """

    @property
    def identity(self) -> SessionIdentity: ...

    async def connect(self) -> None:
        """
        Open the connection. Returns immediately if a connection is already
        open or in progress.

        The Host header is the host and port of the resolved endpoint, after
        ``rewrite_endpoint``. websockets derives it from the URL and generates
        the handshake key itself.

        Raises:
        ------
            ConnectError: The connection could not be opened. A retry may
            already be scheduled.
        """
        ...

    async def disconnect(self, *, wait: bool = False) -> None:
        """
        Close the connection and stop reconnecting.

        Args:
        ----
            wait: If True, wait for the connection to finish closing.
        """
        ...

    def get_state(self) -> ConnectionState:
        """
        Get the connection state.
        """
        ...

    async def send_answer(
        self,
        sdp: str,
        nvst_sdp: str | None = None,
    ) -> None:
        """
        Relay an SDP answer to the remote peer.
        """
        ...

    async def send_ice_candidate(
        self,
        candidate: str,
        sdp_mid: str | None = None,
        sdp_mline_index: int | None = None,
    ) -> None:
        """
        Relay a local ICE candidate to the remote peer.
        """
        ...

    def subscribe(self, subscriber: Subscriber) -> typing.Callable[[], None]:
        """
        Register an event subscriber. Returns a function that unregisters it.
        """
        ...

    async def wait_for_state(
        self,
        state: ConnectionState,
        *,
        timeout: float | None = None,
    ) -> None:
        """
        Wait for the connection to reach a specific state.
        """
        ...


class _WebSocketSignalingClient(SignalingClient):
    _outbox: asyncio.Queue[ws_utils.OutboxItem] | None = None
    _reader_task: asyncio.Task[None] | None = None
    _ws: websockets.ClientConnection | None = None
    _writer_task: asyncio.Task[None] | None = None

    def __init__(
        self,
        *,
        signaling_server: str,
        session_id: str,
        signaling_url: str | None,
        logger: types.Logger,
        rewrite_endpoint: typing.Callable[[str], str] | None = None,
        reconnect_policy: ReconnectPolicy | None = None,
        heartbeat_interval: float = consts.HEARTBEAT_INTERVAL_SEC,
        ping_interval: float = consts.PING_INTERVAL_SEC,
        open_timeout: float = consts.DEFAULT_OPEN_TIMEOUT_SEC,
        verify_tls: bool = False,
        max_message_size: int = consts.MAX_MESSAGE_SIZE,
        rng: random.Random | None = None,
    ) -> None:
        rng = rng or random.Random()

        self._identity = SessionIdentity.create(session_id, rng=rng)
        self._logger = logger
        self._max_message_size = max_message_size
        self._open_timeout = open_timeout
        self._rewrite_endpoint = rewrite_endpoint
        self._signaling_server = signaling_server
        self._signaling_url = signaling_url
        self._verify_tls = verify_tls

        self._ack_counter = codec.AckCounter()
        self._closed_by_user = False
        self._connecting = False
        self._publisher = EventPublisher(logger)

        # Keeps references to background tasks so they aren't garbage
        # collected mid-flight.
        self._tasks: set[asyncio.Task[None]] = set()

        def on_conn_state_change(
            old_state: ConnectionState,
            new_state: ConnectionState,
        ) -> None:
            self._logger.debug(
                "Connection state changed",
                extra={
                    "old": old_state.value,
                    "new": new_state.value,
                },
            )

        self._state = ValueWatcher(
            ConnectionState.DISCONNECTED,
            on_change=on_conn_state_change,
        )

        self._reconnect = _ReconnectController(
            logger,
            self._publisher,
            reconnect_policy or ReconnectPolicy(),
            is_closed_by_user=lambda: self._closed_by_user,
            on_retry=self._on_retry,
            rng=rng,
        )

        self._heartbeat_handler = _HeartbeatHandler(
            logger,
            self,
            heartbeat_interval=heartbeat_interval,
            ping_interval=ping_interval,
        )
        self._handlers: list[_BaseHandler] = [
            _AckHandler(logger, self._identity, self),
            self._heartbeat_handler,
            _PeerMsgHandler(logger, self._publisher),
        ]

    @property
    def identity(self) -> SessionIdentity:
        return self._identity

    def get_state(self) -> ConnectionState:
        return self._state.value

    async def wait_for_state(
        self,
        state: ConnectionState,
        *,
        timeout: float | None = None,
    ) -> None:
        await self._state.wait_for(state, timeout=timeout)

    def subscribe(self, subscriber: Subscriber) -> typing.Callable[[], None]:
        return self._publisher.subscribe(subscriber)

    # ------------------------------------------------------------------
    # Send primitives (Transport protocol)
    # ------------------------------------------------------------------

    def is_open(self) -> bool:
        return self._ws is not None and self._ws.state is _WSState.OPEN

    def send(self, msg: Envelope) -> None:
        if self._ws is None or self._outbox is None:
            return

        data = msg.to_json()
        if isinstance(data, Exception):
            self._logger.error(
                "Failed to encode message", extra={"error": str(data)}
            )
            return

        self._outbox.put_nowait(data)

    def ping(self) -> None:
        if self._outbox is None or not self.is_open():
            return
        self._outbox.put_nowait(ws_utils.PING)

    async def send_answer(
        self,
        sdp: str,
        nvst_sdp: str | None = None,
    ) -> None:
        self._logger.debug(
            "Sending answer",
            extra={
                "length": len(sdp),
                "nvst_sdp_length": len(nvst_sdp) if nvst_sdp else 0,
                "sdp": sdp[: consts.SDP_PREVIEW_CHARS],
            },
        )
        self.send(
            codec.answer(
                self._identity,
                self._ack_counter.next(),
                sdp=sdp,
                nvst_sdp=nvst_sdp,
            )
        )

    async def send_ice_candidate(
        self,
        candidate: str,
        sdp_mid: str | None = None,
        sdp_mline_index: int | None = None,
    ) -> None:
        self._logger.debug(
            "Sending local ICE candidate",
            extra={"candidate": candidate, "sdp_mid": sdp_mid},
        )
        self.send(
            codec.ice_candidate(
                self._identity,
                self._ack_counter.next(),
                IceCandidate(
                    candidate=candidate,
                    sdp_mid=sdp_mid,
                    sdp_mline_index=sdp_mline_index,
                ),
            )
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        # An explicit connect starts a fresh backoff cycle, even after the
        # retries were exhausted.
        self._closed_by_user = False
        self._reconnect.cancel()
        self._reconnect.reset()

        await self._connect()

    async def _connect(self) -> None:
        if self._ws is not None or self._connecting:
            return

        self._connecting = True
        self._state.value = ConnectionState.CONNECTING

        endpoint = resolve_endpoint(
            signaling_server=self._signaling_server,
            signaling_url=self._signaling_url,
            peer_name=self._identity.peer_name,
        )
        url = endpoint.url
        if self._rewrite_endpoint is not None:
            url = self._rewrite_endpoint(url)

        self._logger.debug(
            "Connecting",
            extra={
                "host": endpoint.host,
                "protocol": self._identity.subprotocol,
                "url": url,
            },
        )

        try:
            ws = await websockets.connect(
                url,
                max_size=self._max_message_size,
                open_timeout=self._open_timeout,
                origin=consts.ORIGIN,
                # Liveness is handled by the heartbeat handler.
                ping_interval=None,
                subprotocols=[websockets.Subprotocol(self._identity.subprotocol)],
                user_agent_header=consts.USER_AGENT,
                **self._ssl_kwargs(url),
            )
        except Exception as err:
            self._on_connect_failed(err)
            raise errors.ConnectError(f"Signaling connect failed: {err}") from err
        finally:
            self._connecting = False

        if self._closed_by_user:
            # Disconnected while the handshake was in flight.
            self._spawn(ws.close())
            reason = "closed before open"
            self._publisher.publish(
                DisconnectedEvent(
                    reason=f"code=1000, reason={reason}",
                    code=1000,
                    close_reason=reason,
                )
            )
            raise errors.ConnectError(f"Signaling socket {reason}")

        self._ws = ws
        self._outbox = asyncio.Queue()
        self._writer_task = asyncio.create_task(
            self._write_loop(ws, self._outbox)
        )

        self._reconnect.reset()
        self._state.value = ConnectionState.CONNECTED
        self._logger.debug("Connected")

        self.send(codec.peer_info(self._identity, self._ack_counter.next()))
        for h in self._handlers:
            h.start()

        self._reader_task = self._spawn(self._read_loop(ws))
        self._publisher.publish(ConnectedEvent())

    def _on_connect_failed(self, err: Exception) -> None:
        self._logger.debug("Connect failed", extra={"error": str(err)})
        self._state.value = ConnectionState.DISCONNECTED

        if isinstance(err, websockets.exceptions.ConnectionClosed):
            code = _close_code(err.rcvd.code if err.rcvd else None)
            reason = err.rcvd.reason if err.rcvd else ""
            self._publisher.publish(_disconnected_event(code, reason))
        else:
            code = consts.ABNORMAL_CLOSE_CODE
            self._publisher.publish(
                ErrorEvent(message=f"Signaling connect failed: {err}")
            )

        if self._reconnect.on_close(code):
            self._state.value = ConnectionState.RECONNECTING

    def _on_retry(self) -> None:
        self._spawn(self._retry())

    async def _retry(self) -> None:
        try:
            await self._connect()
        except errors.ConnectError as err:
            # The failure path already consulted the reconnect controller.
            self._logger.warning(
                "Reconnect attempt failed", extra={"error": str(err)}
            )

    async def disconnect(self, *, wait: bool = False) -> None:
        reader_task = self._reader_task
        close_task = self._disconnect()

        if wait:
            if close_task is not None:
                await close_task
            if reader_task is not None:
                await reader_task

    def _disconnect(self) -> asyncio.Task[None] | None:
        """
        Must be sync so that every pending timer is invalidated before
        anything else runs.
        """

        self._closed_by_user = True
        self._reconnect.cancel()
        self._reconnect.reset()

        ws = self._ws
        self._stop_connection()
        self._state.value = ConnectionState.DISCONNECTED

        if ws is None:
            return None
        return self._spawn(ws.close())

    def _stop_connection(self) -> None:
        for h in self._handlers:
            h.stop()

        if self._writer_task is not None:
            self._writer_task.cancel()
            self._writer_task = None

        self._outbox = None
        self._reader_task = None
        self._ws = None

    # ------------------------------------------------------------------
    # Per-connection tasks
    # ------------------------------------------------------------------

    async def _read_loop(self, ws: websockets.ClientConnection) -> None:
        try:
            async for raw in ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                self._handle_raw(raw)
        except websockets.exceptions.ConnectionClosedError as e:
            self._logger.debug(
                "Connection closed abnormally", extra={"error": str(e)}
            )
        except Exception as e:
            self._logger.debug("Connection error", extra={"error": str(e)})

        self._handle_close(ws, _close_code(ws.close_code), ws.close_reason or "")

    async def _write_loop(
        self,
        ws: websockets.ClientConnection,
        outbox: asyncio.Queue[ws_utils.OutboxItem],
    ) -> None:
        while True:
            item = await outbox.get()
            err = await ws_utils.safe_send(self._logger, ws, item)
            if isinstance(err, websockets.exceptions.ConnectionClosed):
                return

    def _handle_raw(self, raw: str) -> None:
        msg = codec.decode_envelope(raw)
        if isinstance(msg, Exception):
            self._publisher.publish(
                LogEvent(
                    message=f"Ignoring non-JSON signaling packet: {raw[: consts.RAW_PREVIEW_CHARS]}"
                )
            )
            return

        for h in self._handlers:
            try:
                h.handle_msg(msg)
            except Exception as err:
                self._logger.error(
                    "Message handler failed",
                    extra={
                        "error": str(err),
                        "handler": type(h).__name__,
                    },
                )

    def _handle_close(
        self,
        ws: websockets.ClientConnection,
        code: int,
        reason: str,
    ) -> None:
        is_current = ws is self._ws
        self._logger.warning(
            "Disconnected",
            extra={
                "close_code": code,
                "close_reason": reason,
            },
        )

        if is_current:
            self._stop_connection()
            self._state.value = ConnectionState.DISCONNECTED

        self._publisher.publish(_disconnected_event(code, reason))

        # A replaced or user-closed connection must not drive reconnection.
        if not is_current:
            return

        if self._reconnect.on_close(code):
            self._state.value = ConnectionState.RECONNECTING

    def _spawn(
        self,
        coro: typing.Coroutine[typing.Any, typing.Any, None],
    ) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _ssl_kwargs(self, url: str) -> dict[str, typing.Any]:
        # websockets rejects an ssl argument for ws:// URLs.
        if not url.startswith("wss://"):
            return {}
        return {"ssl": ws_utils.create_ssl_context(self._verify_tls)}


def _close_code(code: int | None) -> int:
    if code is None:
        return consts.ABNORMAL_CLOSE_CODE
    return int(code)


def _disconnected_event(code: int, reason: str) -> DisconnectedEvent:
    return DisconnectedEvent(
        reason=f"code={code}, reason={reason or 'socket closed'}",
        code=code,
        close_reason=reason,
    )
