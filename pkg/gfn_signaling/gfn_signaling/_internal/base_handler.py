import typing

from .models import Envelope


class Transport(typing.Protocol):
    """
    Send primitives of the connection owner. Handlers never hold the socket
    themselves.
    """

    def is_open(self) -> bool: ...

    def ping(self) -> None:
        """
        Queue a transport-level ping. No-op when no connection is open.
        """
        ...

    def send(self, msg: Envelope) -> None:
        """
        Queue a frame. No-op when no connection is open.
        """
        ...


class _BaseHandler:
    def handle_msg(self, msg: Envelope) -> None:
        pass

    def start(self) -> None:
        """
        Called after every successful open.
        """

        pass

    def stop(self) -> None:
        """
        Called on every close, voluntary or not. Must be synchronous so that
        nothing scheduled before the call runs afterwards.
        """

        pass
