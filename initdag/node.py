"""
Node definitions, receiver binding and work-style detection.
"""

import inspect
import types
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from initdag.types import WorkStyle

WorkCallable = Callable[..., Any]


@dataclass(eq=False)
class NodeDefinition:
    """
    A named unit of work and the nodes it waits for.

    ``depends`` names nodes that must succeed before ``work`` runs.
    ``conditional_depends`` names nodes that become hard dependencies only
    if they are registered when the graph starts. Definitions compare by
    identity, so two registrations of one name stay distinct entries.

    A plain function used as ``work`` always receives the bound context as
    its first argument, like ``self``; a completion callback, if any, comes
    second::

        def run(self, done): ...     # callback style
        async def run(self): ...     # coroutine style
        def run(self): ...           # return style

    ``def run(done)`` is therefore return style with the context bound to
    ``done``. Bound methods, partials, callable objects and zero-argument
    functions are called without a receiver.
    """

    name: str
    work: WorkCallable
    depends: list[str] = field(default_factory=list)
    conditional_depends: list[str] = field(default_factory=list)
    style: Optional[WorkStyle] = None

    def __post_init__(self) -> None:
        """Normalize dependency lists and detect the work style once."""
        self.depends = list(self.depends or [])
        self.conditional_depends = list(self.conditional_depends or [])
        if self.style is None:
            self.style = detect_style(self.work)
        else:
            self.style = WorkStyle(self.style)

    def add_dependency(self, name: str) -> None:
        """Promote ``name`` to a hard dependency unless it already is one."""
        if name not in self.depends:
            self.depends.append(name)


def _positional_params(func: Callable[..., Any]) -> Optional[list[inspect.Parameter]]:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Some builtins expose no signature
        return None
    return [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]


def takes_receiver(work: WorkCallable) -> bool:
    """
    Check whether ``work`` is bound to a context before it is called.

    Plain functions with at least one positional parameter take the bound
    context as their first argument, the way a method takes ``self``.
    Bound methods, partials, callable objects and zero-argument functions
    are called as they are.
    """
    if not isinstance(work, types.FunctionType):
        return False
    params = _positional_params(work)
    return bool(params)


def bind(work: WorkCallable, context: Any) -> WorkCallable:
    """
    Bind ``work`` to ``context`` if it takes a receiver.

    Args:
        work: Node work callable
        context: Object the work observes as its receiver

    Returns:
        Callable ready to be invoked by the completion adapter
    """
    if takes_receiver(work):
        return types.MethodType(work, context)
    return work


def detect_style(work: WorkCallable) -> WorkStyle:
    """
    Detect how ``work`` reports completion.

    A callable that still requires a positional argument once its receiver
    is bound is callback style. Otherwise coroutine functions are awaited and
    anything else is called for its return value.

    Raises:
        TypeError: If ``work`` is not callable
    """
    if not callable(work):
        raise TypeError(f"Node work must be callable, got {type(work).__name__}")

    params = _positional_params(work) or []
    if takes_receiver(work):
        params = params[1:]
    required = [p for p in params if p.default is p.empty]
    if required:
        return WorkStyle.CALLBACK

    target = getattr(work, "func", work)  # functools.partial
    if inspect.iscoroutinefunction(target) or inspect.iscoroutinefunction(
        getattr(target, "__call__", None)
    ):
        return WorkStyle.COROUTINE
    return WorkStyle.RETURN
