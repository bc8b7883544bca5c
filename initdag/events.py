"""
Named signals and the public notification channel of a task graph.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from initdag.errors import ExecutionError, UnhandledErrorSignal

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class Signal(str, Enum):
    """Graph-level signal names. Node names may not collide with these."""

    START = "_start"
    DONE = "done"
    ERROR = "error"


RESERVED_NAMES = frozenset(signal.value for signal in Signal)


def _signal_name(signal: str) -> str:
    return signal.value if isinstance(signal, Signal) else signal


class EventEmitter:
    """
    Thread-safe named-signal emitter for in-process subscribers.

    Every node name is a signal of its own, next to the graph-level
    ``_start``, ``done`` and ``error`` signals. Any number of listeners may
    be attached to a signal; they run in the order they were added.
    """

    def __init__(self) -> None:
        """Initialize the emitter with no listeners."""
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}
        self._lock = threading.Lock()

    def on(self, signal: str, listener: Listener) -> None:
        """
        Add a listener for a signal.

        Args:
            signal: Signal or node name
            listener: Function called with the signal's payload, if any
        """
        with self._lock:
            self._listeners.setdefault(_signal_name(signal), []).append((listener, False))

    def once(self, signal: str, listener: Listener) -> None:
        """
        Add a listener that is removed after its first call.

        Args:
            signal: Signal or node name
            listener: Function called with the signal's payload, if any
        """
        with self._lock:
            self._listeners.setdefault(_signal_name(signal), []).append((listener, True))

    def off(self, signal: str, listener: Listener) -> None:
        """
        Remove the first registration of ``listener`` for a signal.

        Args:
            signal: Signal or node name
            listener: Previously added listener
        """
        with self._lock:
            entries = self._listeners.get(_signal_name(signal), [])
            for index, (registered, _) in enumerate(entries):
                if registered == listener:
                    del entries[index]
                    break

    def listener_count(self, signal: str) -> int:
        """Number of listeners attached to a signal."""
        with self._lock:
            return len(self._listeners.get(_signal_name(signal), []))

    def emit(self, signal: str, *args: Any) -> bool:
        """
        Call every listener of a signal with ``args``.

        Args:
            signal: Signal or node name
            *args: Payload passed to each listener

        Returns:
            True if the signal had listeners

        Raises:
            UnhandledErrorSignal: If ``error`` is emitted with no listeners
        """
        name = _signal_name(signal)
        with self._lock:
            entries = list(self._listeners.get(name, []))
            if any(once for _, once in entries):
                self._listeners[name] = [entry for entry in self._listeners[name] if not entry[1]]

        if not entries:
            if name == Signal.ERROR.value:
                raise _unhandled(args)
            return False

        # Call listeners outside the lock so they may add or remove listeners
        for listener, _ in entries:
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener for signal %r raised", name)
        return True

    def clear(self, signal: Optional[str] = None) -> None:
        """Remove all listeners, or only those of one signal."""
        with self._lock:
            if signal is None:
                self._listeners.clear()
            else:
                self._listeners.pop(_signal_name(signal), None)


def _unhandled(args: tuple[Any, ...]) -> UnhandledErrorSignal:
    cause = args[0] if args else None
    if isinstance(cause, ExecutionError):
        error = UnhandledErrorSignal(
            f"Unhandled error signal from node '{cause.node_name}': {cause.message}",
            run_id=cause.run_id,
            node_name=cause.node_name,
        )
    else:
        error = UnhandledErrorSignal(f"Unhandled error signal: {cause!r}")
    if isinstance(cause, BaseException):
        error.__cause__ = cause
    return error
