from . import codec, types
from .base_handler import _BaseHandler
from .consts import SDP_PREVIEW_CHARS
from .events import EventPublisher, LogEvent, OfferEvent, RemoteIceEvent
from .models import Envelope, IceCandidate


class _PeerMsgHandler(_BaseHandler):
    """
    Turns relayed negotiation payloads into offer and remote ICE events.
    """

    def __init__(
        self,
        logger: types.Logger,
        publisher: EventPublisher,
    ) -> None:
        self._logger = logger
        self._publisher = publisher

    def handle_msg(self, msg: Envelope) -> None:
        # Heartbeat frames carry nothing else.
        if msg.hb:
            return

        if msg.peer_msg is None or not msg.peer_msg.msg:
            return

        payload = codec.decode_peer_payload(msg.peer_msg.msg)
        if isinstance(payload, Exception):
            self._publisher.publish(
                LogEvent(message="Received non-JSON peer payload")
            )
            return

        if isinstance(payload, codec.OfferPayload):
            self._logger.debug(
                "Received offer",
                extra={
                    "length": len(payload.sdp),
                    "sdp": payload.sdp[:SDP_PREVIEW_CHARS],
                },
            )
            self._publisher.publish(OfferEvent(sdp=payload.sdp))
            return

        if isinstance(payload, IceCandidate):
            self._logger.debug(
                "Received remote ICE candidate",
                extra={"candidate": payload.candidate},
            )
            self._publisher.publish(RemoteIceEvent(candidate=payload))
            return

        self._publisher.publish(
            LogEvent(
                message=f"Unhandled peer message keys: {', '.join(payload.keys)}"
            )
        )
