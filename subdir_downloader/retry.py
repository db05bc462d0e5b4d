import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar('T')


async def retry(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 2,
    delay: float = 0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    on_error: Callable[[int, BaseException], None] | None = None,
) -> T:
    """Await ``func()`` up to ``attempts`` times, sleeping ``delay`` in between.

    ``on_error`` is called with the attempt number and the exception after
    every failed attempt. The last exception is re-raised.
    """
    if attempts < 1:
        raise ValueError('attempts must be positive')
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except exceptions as exc:
            if on_error is not None:
                on_error(attempt, exc)
            if attempt == attempts:
                raise
            await asyncio.sleep(delay)
