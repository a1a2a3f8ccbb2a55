import unittest
import unittest.mock

from .events import ConnectedEvent, Event, EventPublisher, LogEvent


class TestEventPublisher(unittest.TestCase):
    def test_registration_order(self) -> None:
        publisher = EventPublisher(unittest.mock.Mock())
        calls: list[tuple[str, Event]] = []

        publisher.subscribe(lambda e: calls.append(("a", e)))
        publisher.subscribe(lambda e: calls.append(("b", e)))

        event = LogEvent(message="hi")
        publisher.publish(event)

        assert calls == [("a", event), ("b", event)]

    def test_subscriber_error_is_isolated(self) -> None:
        logger = unittest.mock.Mock()
        publisher = EventPublisher(logger)
        received: list[Event] = []

        def bad(_: Event) -> None:
            raise Exception("oh no")

        publisher.subscribe(bad)
        publisher.subscribe(received.append)

        publisher.publish(ConnectedEvent())

        assert received == [ConnectedEvent()]
        logger.error.assert_called_once()

    def test_unsubscribe(self) -> None:
        publisher = EventPublisher(unittest.mock.Mock())
        received: list[Event] = []

        unsubscribe = publisher.subscribe(received.append)
        publisher.publish(ConnectedEvent())
        unsubscribe()
        publisher.publish(ConnectedEvent())

        assert len(received) == 1

        # Idempotent.
        unsubscribe()

    def test_unsubscribe_during_publish(self) -> None:
        publisher = EventPublisher(unittest.mock.Mock())
        received: list[str] = []
        unsubscribe_b: list[object] = []

        def a(_: Event) -> None:
            received.append("a")
            unsubscribe_b[0]()  # type: ignore[operator]

        def b(_: Event) -> None:
            received.append("b")

        publisher.subscribe(a)
        unsubscribe_b.append(publisher.subscribe(b))

        # Delivery already in progress still reaches b.
        publisher.publish(ConnectedEvent())
        publisher.publish(ConnectedEvent())

        assert received == ["a", "b", "a"]
