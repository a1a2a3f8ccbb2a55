from __future__ import annotations

import dataclasses
import typing

from . import types
from .models import IceCandidate


@dataclasses.dataclass(frozen=True)
class ConnectedEvent:
    pass


@dataclasses.dataclass(frozen=True)
class DisconnectedEvent:
    # Human readable summary, e.g. "code=1006, reason=socket closed"
    reason: str

    code: typing.Optional[int] = None
    close_reason: str = ""


@dataclasses.dataclass(frozen=True)
class ErrorEvent:
    message: str

    # True when the client gave up and won't act again until the caller
    # connects.
    fatal: bool = False


@dataclasses.dataclass(frozen=True)
class LogEvent:
    message: str


@dataclasses.dataclass(frozen=True)
class OfferEvent:
    sdp: str


@dataclasses.dataclass(frozen=True)
class RemoteIceEvent:
    candidate: IceCandidate


Event = typing.Union[
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    LogEvent,
    OfferEvent,
    RemoteIceEvent,
]

Subscriber = typing.Callable[[Event], None]


class EventPublisher:
    """
    Synchronous fan-out to subscribers, in registration order. A subscriber
    that raises is logged and skipped.
    """

    def __init__(self, logger: types.Logger) -> None:
        self._logger = logger
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> typing.Callable[[], None]:
        """
        Register a subscriber. Returns a function that unregisters it.
        Calling the returned function more than once is a no-op.
        """

        self._subscribers.append(subscriber)
        unsubscribed = False

        def unsubscribe() -> None:
            nonlocal unsubscribed
            if unsubscribed:
                return
            unsubscribed = True
            self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: Event) -> None:
        # Copy so that subscribing/unsubscribing inside a callback doesn't
        # affect this delivery.
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as err:
                self._logger.error(
                    "Event subscriber failed",
                    extra={
                        "error": str(err),
                        "event": type(event).__name__,
                    },
                )
