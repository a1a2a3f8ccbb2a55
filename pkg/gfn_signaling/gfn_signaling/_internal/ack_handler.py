from . import codec, types
from .base_handler import Transport, _BaseHandler
from .models import Envelope, SessionIdentity


class _AckHandler(_BaseHandler):
    """
    Acknowledges inbound frames that request it.
    """

    def __init__(
        self,
        logger: types.Logger,
        identity: SessionIdentity,
        transport: Transport,
    ) -> None:
        self._identity = identity
        self._logger = logger
        self._transport = transport

    def handle_msg(self, msg: Envelope) -> None:
        if msg.ackid is None:
            return

        # The server echoes our own peer info back to us. Acking it would ack
        # our own message.
        peer_info = msg.peer_info
        if peer_info is not None and peer_info.id == self._identity.peer_id:
            return

        self._transport.send(codec.ack(msg.ackid))
