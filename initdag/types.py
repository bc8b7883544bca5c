"""
Enumerations shared across initdag.
"""

from enum import Enum


class WorkStyle(str, Enum):
    """How a node's work reports completion."""

    CALLBACK = "callback"  # work(done) calls done(error=None, result=None)
    COROUTINE = "coroutine"  # async def work()
    RETURN = "return"  # work() returns a value, an awaitable or a Future


class RunStatus(str, Enum):
    """Outcome of a graph run."""

    OK = "ok"
    ERROR = "error"
