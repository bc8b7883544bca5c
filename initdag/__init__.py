"""
initdag: run named asynchronous units of work in dependency order.
"""

__version__ = "0.1.0"

from initdag.adapter import invoke, to_callback
from initdag.context import RunContext
from initdag.engine import RunResult, TaskGraph
from initdag.errors import (
    CallbackError,
    ExecutionError,
    GraphError,
    InitDagError,
    RegistrationError,
    UnhandledErrorSignal,
    WorkCancelledError,
)
from initdag.events import RESERVED_NAMES, EventEmitter, Signal
from initdag.node import NodeDefinition
from initdag.registry import NodeRegistry
from initdag.types import RunStatus, WorkStyle

__all__ = [
    # Core
    "TaskGraph",
    "RunResult",
    "RunContext",
    "NodeDefinition",
    "NodeRegistry",
    # Completion
    "invoke",
    "to_callback",
    # Types
    "WorkStyle",
    "RunStatus",
    # Signals
    "Signal",
    "RESERVED_NAMES",
    "EventEmitter",
    # Errors
    "InitDagError",
    "RegistrationError",
    "GraphError",
    "ExecutionError",
    "CallbackError",
    "UnhandledErrorSignal",
    "WorkCancelledError",
]
