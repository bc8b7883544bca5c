"""
Event monitoring example.

Demonstrates:
- Subscribing to per-node and graph signals
- Handling the error signal
- Nodes blocked behind a failure
"""

import asyncio
import logging
import time

from initdag import ExecutionError, NodeDefinition, TaskGraph


class StartupMonitor:
    """Custom monitor that tracks graph signals."""

    def __init__(self, graph: TaskGraph) -> None:
        """Attach to every node and graph signal."""
        self.graph = graph
        self.started = time.monotonic()
        self.finished = asyncio.get_running_loop().create_future()

        graph.on("_start", self.on_start)
        for name in graph.list_names():
            graph.on(name, lambda name=name: self.on_node(name))
        graph.on("done", self.on_done)
        graph.on("error", self.on_error)

    def elapsed(self) -> float:
        return (time.monotonic() - self.started) * 1000

    def on_start(self) -> None:
        print(f"\n🚀 Graph started with {len(self.graph.list_names())} nodes")

    def on_node(self, name: str) -> None:
        print(f"✓  '{name}' finished at {self.elapsed():.1f}ms")

    def on_done(self) -> None:
        print(f"\n✅ All nodes finished in {self.elapsed():.1f}ms")
        if not self.finished.done():
            self.finished.set_result(True)

    def on_error(self, error: ExecutionError) -> None:
        print(f"✗  '{error.node_name}' failed: {error.message}")
        if not self.finished.done():
            self.finished.set_result(False)


async def flaky_network(self):
    await asyncio.sleep(0.03)
    raise ConnectionError("network unreachable")


async def local_disk(self):
    await asyncio.sleep(0.01)


async def remote_sync(self):
    print("never printed: depends on the failed node")


async def main() -> None:
    """Run a graph with one failing branch."""
    graph = TaskGraph()
    graph.register(NodeDefinition("disk", local_disk))
    graph.register(NodeDefinition("network", flaky_network))
    graph.register(NodeDefinition("sync", remote_sync, depends=["disk", "network"]))

    monitor = StartupMonitor(graph)
    graph.start()
    ok = await monitor.finished

    print(f"\nSucceeded: {ok}")
    print(f"Still registered: {graph.list_names()}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main())
