from __future__ import annotations

import asyncio
import dataclasses
import math
import random
import typing

from . import consts, types
from .events import ErrorEvent, EventPublisher


@dataclasses.dataclass(frozen=True)
class ReconnectPolicy:
    max_attempts: int = consts.MAX_RECONNECT_ATTEMPTS
    base_delay_ms: int = consts.RECONNECT_BASE_DELAY_MS
    max_delay_ms: int = consts.RECONNECT_MAX_DELAY_MS
    jitter_ms: int = consts.RECONNECT_JITTER_MS

    def base_delay_for(self, attempt: int) -> int:
        """
        Delay before jitter for the given 1-indexed attempt.
        """

        return min(self.max_delay_ms, self.base_delay_ms * 2 ** (attempt - 1))

    def delay_for(self, attempt: int, rng: random.Random) -> int:
        jitter = math.floor(rng.random() * self.jitter_ms)
        return self.base_delay_for(attempt) + jitter


def is_clean_close(code: int | None) -> bool:
    return code in consts.CLEAN_CLOSE_CODES


class _ReconnectController:
    """
    Decides whether and when to retry after an involuntary close. At most one
    retry is pending at a time.
    """

    _handle: asyncio.TimerHandle | None = None

    def __init__(
        self,
        logger: types.Logger,
        publisher: EventPublisher,
        policy: ReconnectPolicy,
        *,
        is_closed_by_user: typing.Callable[[], bool],
        on_retry: typing.Callable[[], None],
        rng: random.Random | None = None,
    ) -> None:
        self._attempts = 0
        self._is_closed_by_user = is_closed_by_user
        self._last_delay_ms: int | None = None
        self._logger = logger
        self._on_retry = on_retry
        self._policy = policy
        self._publisher = publisher
        self._rng = rng or random.Random()

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def last_delay_ms(self) -> int | None:
        """
        Delay of the most recently scheduled retry.
        """

        return self._last_delay_ms

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def should_reconnect(self, close_code: int | None) -> bool:
        if self._is_closed_by_user():
            return False
        return not is_clean_close(close_code)

    def on_close(self, close_code: int | None) -> bool:
        """
        Handle an involuntary close. Returns True if a retry is pending
        afterwards.
        """

        if not self.should_reconnect(close_code):
            return False
        return self.schedule()

    def schedule(self) -> bool:
        if self._handle is not None:
            return True
        if self._is_closed_by_user():
            return False

        if self._attempts >= self._policy.max_attempts:
            self._logger.error(
                "Reconnect attempts exhausted",
                extra={"max_attempts": self._policy.max_attempts},
            )
            self._publisher.publish(
                ErrorEvent(
                    message="Signaling reconnect exhausted (max retries reached)",
                    fatal=True,
                )
            )
            return False

        self._attempts += 1
        delay_ms = self._policy.delay_for(self._attempts, self._rng)
        self._last_delay_ms = delay_ms
        self._logger.warning(
            f"Scheduling reconnect #{self._attempts}/{self._policy.max_attempts} in {delay_ms}ms",
            extra={
                "attempt": self._attempts,
                "delay_ms": delay_ms,
            },
        )

        self._handle = asyncio.get_running_loop().call_later(
            delay_ms / 1000,
            self._fire,
        )
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        self._attempts = 0

    def _fire(self) -> None:
        self._handle = None
        if self._is_closed_by_user():
            return
        self._on_retry()
