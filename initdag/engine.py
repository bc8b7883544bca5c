"""
Execution engine for dependency-ordered initialization graphs.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from initdag.adapter import invoke
from initdag.context import RunContext
from initdag.errors import ExecutionError, GraphError
from initdag.events import EventEmitter, Listener, Signal
from initdag.node import NodeDefinition, WorkCallable, bind
from initdag.registry import NodeRegistry
from initdag.resolver import WaitSet, resolve
from initdag.types import RunStatus

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a graph run driven by ``TaskGraph.run``."""

    run_id: Optional[str]
    status: RunStatus
    completed: list[str]
    results: dict[str, Any]
    started_at: datetime
    finished_at: datetime
    duration_ms: float
    error: Optional[ExecutionError] = None
    failed: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if run succeeded."""
        return self.status == RunStatus.OK


class TaskGraph:
    """
    Graph of named asynchronous units of work.

    Register nodes with ``register`` (or the ``node`` decorator), subscribe
    to ``done`` and ``error``, then call ``start``. Each node's work runs
    once every node it depends on has succeeded. Completion is reported
    through signals only: ``<node name>`` when a node succeeds, ``done``
    once every node has succeeded, and ``error`` with an
    :class:`~initdag.errors.ExecutionError` for every failing node.

    Cycles are not detected; nodes on a cycle never run.
    """

    def __init__(
        self,
        *,
        strict_names: bool = True,
        max_concurrency: Optional[int] = None,
    ) -> None:
        """
        Initialize an empty graph.

        Args:
            strict_names: Reject a second registration of an existing name
            max_concurrency: Maximum node works running at once (default:
                unbounded)
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.max_concurrency = max_concurrency
        self._registry = NodeRegistry(strict_names=strict_names)
        self._emitter = EventEmitter()
        self._running = False
        self._run: Optional[RunContext] = None
        self._waiters: dict[str, list[WaitSet]] = {}
        self._tasks: set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None

    # -- registry -----------------------------------------------------------

    def register(self, node: NodeDefinition, context: Any = None) -> None:
        """
        Add a node to the graph.

        Args:
            node: Node definition
            context: Object the node's work is bound to (default: this graph)

        Raises:
            RegistrationError: If the name is reserved or already registered
        """
        self._registry.register(node, context)

    def node(
        self,
        name: str,
        depends: Optional[list[str]] = None,
        conditional_depends: Optional[list[str]] = None,
        context: Any = None,
    ) -> Callable[[WorkCallable], WorkCallable]:
        """
        Decorator registering a function as a node's work.

        Example:
            >>> @graph.node("cache", depends=["storage"])
            ... async def init_cache(self):
            ...     await self.cache.connect()
        """
        def decorator(work: WorkCallable) -> WorkCallable:
            self.register(
                NodeDefinition(
                    name=name,
                    work=work,
                    depends=depends or [],
                    conditional_depends=conditional_depends or [],
                ),
                context,
            )
            return work

        return decorator

    def deregister(self, names: Any) -> None:
        """
        Remove the nodes named in ``names``.

        Has no effect while the graph is running, or when ``names`` is not
        a list of strings.
        """
        if self._running:
            logger.debug("Graph is running; ignoring deregister of %r", names)
            return
        self._registry.deregister(names)

    def list_names(self) -> list[str]:
        """Names of registered nodes in registration order."""
        return self._registry.list_names()

    @property
    def running(self) -> bool:
        """True from ``start`` until ``done`` or ``error`` fires."""
        return self._running

    @property
    def results(self) -> dict[str, Any]:
        """Values settled by the nodes of the current or last run."""
        return dict(self._run.results) if self._run else {}

    # -- signals ------------------------------------------------------------

    def on(self, signal: str, listener: Listener) -> None:
        """Add a listener for a node name or graph signal."""
        self._emitter.on(signal, listener)

    def once(self, signal: str, listener: Listener) -> None:
        """Add a listener removed after its first call."""
        self._emitter.once(signal, listener)

    def off(self, signal: str, listener: Listener) -> None:
        """Remove a listener."""
        self._emitter.off(signal, listener)

    def listener_count(self, signal: str) -> int:
        """Number of listeners for a signal."""
        return self._emitter.listener_count(signal)

    # -- execution ----------------------------------------------------------

    def start(self) -> None:
        """
        Start running the graph.

        Returns before any work completes. An empty graph emits ``done``
        immediately, without an event loop and without entering the
        running state. Otherwise a running asyncio loop is required and the
        start signal fires on the loop's next turn, once every node waits.

        Raises:
            GraphError: If the graph is already running
            RuntimeError: If the graph is not empty and no loop is running
        """
        if self._running:
            raise GraphError(
                "Graph is already running",
                run_id=self._run.run_id if self._run else None,
            )

        if not len(self._registry):
            logger.debug("Starting empty graph")
            self._run = None
            self._emitter.emit(Signal.DONE)
            return

        loop = asyncio.get_running_loop()
        self._running = True
        self._run = RunContext()
        if self.max_concurrency is not None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        else:
            self._semaphore = None

        nodes = list(self._registry)
        self._waiters = resolve(nodes, self._registry.list_names())
        logger.debug("Run %s armed %d nodes", self._run.run_id, len(nodes))

        loop.call_soon(self._signal, Signal.START.value, self._run)

    async def run(self) -> RunResult:
        """
        Start the graph and wait for ``done`` or the first ``error``.

        Nodes independent of a failure keep running after this returns;
        their own failures are no longer handled by this call.

        Returns:
            RunResult with the outcome of the run
        """
        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()

        def on_done() -> None:
            if not finished.done():
                finished.set_result(None)

        def on_error(error: ExecutionError) -> None:
            if not finished.done():
                finished.set_exception(error)

        started_at = datetime.now(timezone.utc)
        self.once(Signal.DONE, on_done)
        self.on(Signal.ERROR, on_error)
        error: Optional[ExecutionError] = None
        try:
            self.start()
            await finished
            status = RunStatus.OK
        except ExecutionError as e:
            status = RunStatus.ERROR
            error = e
        finally:
            self.off(Signal.DONE, on_done)
            self.off(Signal.ERROR, on_error)

        finished_at = datetime.now(timezone.utc)
        run = self._run
        if run is not None:
            started_at = run.started_at
        return RunResult(
            run_id=run.run_id if run else None,
            status=status,
            completed=list(run.completed) if run else [],
            results=dict(run.results) if run else {},
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=(finished_at - started_at).total_seconds() * 1000,
            error=error,
            failed=list(run.failed) if run else [],
        )

    def _signal(self, name: str, run: RunContext) -> None:
        """Fire a node or start signal: release satisfied waiters, then notify listeners."""
        if run is not self._run:
            return
        if name == Signal.START.value:
            logger.debug("Run %s started", run.run_id)

        for wait_set in self._waiters.get(name, []):
            if wait_set.observe(name):
                self._spawn(wait_set.node, run)
        self._emitter.emit(name)

    def _spawn(self, node: NodeDefinition, run: RunContext) -> None:
        task = asyncio.get_running_loop().create_task(self._execute_node(node, run))
        self._tasks.add(task)
        task.add_done_callback(self._task_finished)

    def _task_finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # An error signal nobody listens to ends up here
            task.get_loop().call_exception_handler({
                "message": "Unhandled exception in task graph",
                "exception": exc,
                "task": task,
            })

    async def _execute_node(self, node: NodeDefinition, run: RunContext) -> None:
        """Run one node's work and report its settlement."""
        context = self._registry.binding(node.name)
        work = bind(node.work, self if context is None else context)
        node_logger = run.node_logger(node.name)

        try:
            if self._semaphore is not None:
                async with self._semaphore:
                    run.mark_running(node.name)
                    node_logger.debug("Running node %r", node.name)
                    result = await invoke(work, node.style, node.name)
            else:
                run.mark_running(node.name)
                node_logger.debug("Running node %r", node.name)
                result = await invoke(work, node.style, node.name)
        except Exception as e:
            node_logger.debug(
                "Node %r failed after %.1fms: %s", node.name, run.elapsed_ms(node.name), e
            )
            self._fail(node, run, e)
        else:
            node_logger.debug(
                "Node %r finished in %.1fms", node.name, run.elapsed_ms(node.name)
            )
            self._succeed(node, run, result)

    def _succeed(self, node: NodeDefinition, run: RunContext, result: Any) -> None:
        run.completed.append(node.name)
        run.results[node.name] = result
        self._registry.remove(node)
        self._signal(node.name, run)

        if not len(self._registry) and run is self._run:
            self._running = False
            logger.debug("Run %s done", run.run_id)
            self._emitter.emit(Signal.DONE)

    def _fail(self, node: NodeDefinition, run: RunContext, exc: Exception) -> None:
        run.failed.append(node.name)
        error = ExecutionError(
            str(exc),
            run_id=run.run_id,
            node_name=node.name,
            metadata={"error_class": type(exc).__name__},
            error=exc,
        )
        if run is self._run:
            self._running = False
        self._emitter.emit(Signal.ERROR, error)
