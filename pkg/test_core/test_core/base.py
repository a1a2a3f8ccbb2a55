import asyncio
import datetime
import inspect
import typing


async def wait_for(
    assertion: typing.Callable[[], None]
    | typing.Callable[[], typing.Awaitable[None]],
    *,
    timeout: datetime.timedelta = datetime.timedelta(seconds=5),
) -> None:
    start = datetime.datetime.now()
    while True:
        try:
            if inspect.iscoroutinefunction(assertion):
                await assertion()
            else:
                assertion()
            return
        except Exception as err:
            timed_out = datetime.datetime.now() > start + timeout
            if timed_out:
                raise err

        await asyncio.sleep(0.02)


async def wait_for_len(
    get_value: typing.Callable[[], typing.Sequence[object]],
    length: int,
    *,
    timeout: datetime.timedelta = datetime.timedelta(seconds=5),
) -> None:
    def assertion() -> None:
        assert len(get_value()) == length

    await wait_for(assertion, timeout=timeout)


async def wait_for_truthy(
    get_value: typing.Callable[[], object],
    *,
    timeout: datetime.timedelta = datetime.timedelta(seconds=5),
) -> None:
    def assertion() -> None:
        assert bool(get_value())

    await wait_for(assertion, timeout=timeout)
