from __future__ import annotations

import asyncio
import typing

T = typing.TypeVar("T")


class ValueWatcher(typing.Generic[T]):
    """
    A container that allows consumers to watch for changes to the wrapped
    value. Must only be used from the event loop thread.
    """

    def __init__(
        self,
        initial_value: T,
        *,
        on_change: typing.Optional[typing.Callable[[T, T], None]] = None,
    ) -> None:
        """
        Args:
            initial_value: The initial value.
            on_change: Called when the value changes. Good for debug logging.
        """

        self._on_changes: list[typing.Callable[[T, T], None]] = []
        if on_change:
            self._on_changes.append(on_change)

        # Pending waiters. Each is resolved with the first new value that
        # satisfies its predicate.
        self._waiters: list[
            tuple[typing.Callable[[T], bool], asyncio.Future[T]]
        ] = []

        self._value = initial_value

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if new_value == self._value:
            return

        old_value = self._value
        self._value = new_value

        for predicate, fut in list(self._waiters):
            if fut.done():
                continue
            if predicate(new_value):
                fut.set_result(new_value)

        for on_change in self._on_changes:
            on_change(old_value, new_value)

    def on_change(self, on_change: typing.Callable[[T, T], None]) -> None:
        """
        Add a callback that's called when the value changes.
        """

        self._on_changes.append(on_change)

    async def wait_for(
        self,
        value: T,
        *,
        immediate: bool = True,
        timeout: typing.Optional[float] = None,
    ) -> T:
        """
        Wait for the value to be equal to the given value.

        Args:
            value: Return when the value is equal to this.
            immediate: If True and the value already matches, return immediately. Defaults to True.
            timeout: Seconds to wait before raising asyncio.TimeoutError.
        """

        if immediate and self._value == value:
            return self._value

        return await self._wait(lambda v: v == value, timeout)

    async def _wait(
        self,
        predicate: typing.Callable[[T], bool],
        timeout: typing.Optional[float],
    ) -> T:
        fut: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        waiter = (predicate, fut)
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(fut, timeout)
        finally:
            self._waiters.remove(waiter)
