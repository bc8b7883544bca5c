"""
Exception hierarchy for the initdag task graph.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class InitDagError(Exception):
    """Base exception for all initdag errors."""

    def __init__(
        self,
        message: str,
        run_id: Optional[str] = None,
        node_name: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.run_id = run_id
        self.node_name = node_name
        self.metadata = metadata or {}
        self.timestamp = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        parts = [f"message={self.message!r}"]
        if self.run_id:
            parts.append(f"run_id={self.run_id!r}")
        if self.node_name:
            parts.append(f"node_name={self.node_name!r}")
        return f"{self.__class__.__name__}({', '.join(parts)})"


class RegistrationError(InitDagError):
    """Raised when a node cannot be registered (reserved or duplicate name)."""

    pass


class GraphError(InitDagError):
    """Raised when the graph is used in a state that does not allow it."""

    pass


class ExecutionError(InitDagError):
    """
    Payload of the ``error`` signal.

    ``message`` is the text of the original failure and ``error`` holds the
    original value, which is also chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        run_id: Optional[str] = None,
        node_name: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, run_id=run_id, node_name=node_name, metadata=metadata)
        self.error = error
        self.__cause__ = error


class CallbackError(InitDagError):
    """Raised when work hands a non-exception error value to its callback."""

    def __init__(self, value: Any, node_name: Optional[str] = None) -> None:
        super().__init__(str(value), node_name=node_name, metadata={"value": value})
        self.value = value


class WorkCancelledError(InitDagError):
    """Raised when a node's work is cancelled before it settles."""

    def __init__(self, node_name: Optional[str] = None) -> None:
        label = f"Node '{node_name}' work" if node_name else "Node work"
        super().__init__(f"{label} was cancelled", node_name=node_name)


class UnhandledErrorSignal(InitDagError):
    """Raised when an ``error`` signal is emitted with no listeners."""

    pass
