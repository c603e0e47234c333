"""Structured fan-out of store calls."""

from typing import Any, Awaitable, Callable, List, Sequence

import anyio


def _first_failure(group: BaseExceptionGroup) -> BaseException:
    """Depth-first first leaf exception, preferring real failures over cancellations."""
    leaves: List[BaseException] = []

    def walk(exc: BaseException) -> None:
        if isinstance(exc, BaseExceptionGroup):
            for inner in exc.exceptions:
                walk(inner)
        else:
            leaves.append(exc)

    walk(group)
    cancelled = anyio.get_cancelled_exc_class()
    for leaf in leaves:
        if not isinstance(leaf, cancelled):
            return leaf
    return leaves[0]


async def gather(calls: Sequence[Callable[[], Awaitable[Any]]]) -> List[Any]:
    """Run the calls concurrently and return their results in order.

    All-or-nothing: the first failure cancels the calls still running and is
    re-raised as is (not wrapped in an exception group).
    """
    results: List[Any] = [None] * len(calls)

    async def run(index: int, call: Callable[[], Awaitable[Any]]) -> None:
        results[index] = await call()

    try:
        async with anyio.create_task_group() as tg:
            for index, call in enumerate(calls):
                tg.start_soon(run, index, call)
    except BaseExceptionGroup as group:
        raise _first_failure(group) from None
    return results
