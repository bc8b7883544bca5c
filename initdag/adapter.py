"""
Completion adapter.

Runs a node's work in whichever style it reports completion and turns the
outcome into a single awaited settlement: a result, or a raised exception.
Cancellation of the work itself settles as ``WorkCancelledError``; only a
cancellation of the awaiting task propagates as ``CancelledError``.
"""

import asyncio
import concurrent.futures
import inspect
import logging
from typing import Any, Callable, Optional

from initdag.errors import CallbackError, WorkCancelledError
from initdag.node import WorkCallable
from initdag.types import WorkStyle

logger = logging.getLogger(__name__)

DoneCallback = Callable[..., None]


async def invoke(
    work: WorkCallable,
    style: WorkStyle,
    node_name: Optional[str] = None,
) -> Any:
    """
    Call ``work`` and wait for it to settle.

    Args:
        work: Bound node work
        style: Completion style detected for the node
        node_name: Name used in log records and error values

    Returns:
        The value the work settled with

    Raises:
        WorkCancelledError: If the work was cancelled
        Exception: Whatever the work failed with
    """
    if style is WorkStyle.CALLBACK:
        return await _invoke_callback(work, node_name)
    try:
        value = work()
    except asyncio.CancelledError:
        raise WorkCancelledError(node_name) from None
    if style is WorkStyle.COROUTINE:
        return await _await_work(value, node_name)
    return await _resolve(value, node_name)


async def _resolve(value: Any, node_name: Optional[str]) -> Any:
    """Await ``value`` if it is awaitable or a Future, else return it."""
    if isinstance(value, concurrent.futures.Future):
        return await _await_work(asyncio.wrap_future(value), node_name)
    if inspect.isawaitable(value):
        return await _await_work(value, node_name)
    return value


async def _await_work(awaitable: Any, node_name: Optional[str]) -> Any:
    """Await work in its own future so its cancellation stays distinguishable."""
    future = asyncio.ensure_future(awaitable)
    try:
        await asyncio.wait({future})
    except asyncio.CancelledError:
        future.cancel()
        raise
    if future.cancelled():
        raise WorkCancelledError(node_name)
    return future.result()


async def _invoke_callback(work: WorkCallable, node_name: Optional[str]) -> Any:
    loop = asyncio.get_running_loop()
    settled: asyncio.Future[Any] = loop.create_future()

    def settle(error: Any, result: Any) -> None:
        if settled.done():
            logger.warning(
                "Node %r signalled completion more than once; ignoring", node_name
            )
            return
        if error is None:
            settled.set_result(result)
        elif isinstance(error, asyncio.CancelledError):
            settled.set_exception(WorkCancelledError(node_name))
        elif isinstance(error, BaseException):
            settled.set_exception(error)
        else:
            settled.set_exception(CallbackError(error, node_name=node_name))

    def done(error: Any = None, result: Any = None) -> None:
        # May be called inline, on a later turn, or from another thread
        loop.call_soon_threadsafe(settle, error, result)

    try:
        returned = work(done)
    except (Exception, asyncio.CancelledError) as exc:
        done(exc)
    else:
        if inspect.isawaitable(returned):
            # async def work(self, done): only a failure of the body settles here
            _relay(asyncio.ensure_future(returned), done, forward_result=False)

    return await settled


def _relay(
    future: "asyncio.Future[Any]",
    done: DoneCallback,
    forward_result: bool = True,
) -> None:
    def relay(fut: "asyncio.Future[Any]") -> None:
        if fut.cancelled():
            done(asyncio.CancelledError())
        elif fut.exception() is not None:
            done(fut.exception())
        elif forward_result:
            done(None, fut.result())

    future.add_done_callback(relay)


def to_callback(awaitable: Any, done: DoneCallback) -> "asyncio.Future[Any]":
    """
    Forward an awaitable's settlement to a completion callback.

    Lets future-style code sit behind a callback-style node::

        def run(self, done):
            to_callback(self.open_pool(), done)

    Args:
        awaitable: Coroutine, Task or Future to schedule
        done: Callback called as ``done(None, result)`` or ``done(error)``

    Returns:
        The scheduled future
    """
    future = asyncio.ensure_future(awaitable)
    _relay(future, done)
    return future
