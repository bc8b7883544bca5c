"""
Startup sequence example.

Demonstrates:
- Registering nodes in each completion style
- Hard and conditional dependencies
- Binding work to an application object
- Awaiting the whole graph with run()
"""

import asyncio
import logging

from initdag import NodeDefinition, TaskGraph, to_callback


class App:
    """Application object every node initializes a part of."""

    def __init__(self) -> None:
        self.parts: dict[str, str] = {}


def init_config(self, done):
    """Callback style: completes inline."""
    self.parts["config"] = "loaded"
    done(None, self.parts["config"])


async def init_storage(self):
    """Coroutine style."""
    await asyncio.sleep(0.05)
    self.parts["storage"] = "sqlite://app.db"
    return self.parts["storage"]


async def _connect_cache(app: App) -> str:
    await asyncio.sleep(0.02)
    app.parts["cache"] = "memory"
    return app.parts["cache"]


def init_cache(self, done):
    """Hybrid style: coroutine behind a callback."""
    to_callback(_connect_cache(self), done)


def init_services(self):
    """Return style: plain value."""
    self.parts["services"] = "ready"
    return sorted(self.parts)


async def main() -> None:
    """Run the startup graph."""
    app = App()
    graph = TaskGraph()

    graph.register(NodeDefinition("config", init_config), app)
    graph.register(NodeDefinition("storage", init_storage, depends=["config"]), app)
    graph.register(NodeDefinition("cache", init_cache, depends=["config"]), app)
    graph.register(
        NodeDefinition(
            "services",
            init_services,
            depends=["storage", "cache"],
            # No "metrics" node is registered, so this is dropped
            conditional_depends=["metrics"],
        ),
        app,
    )

    for name in graph.list_names():
        graph.on(name, lambda name=name: print(f"✓  {name}"))

    result = await graph.run()

    print(f"\nStatus: {result.status.value} in {result.duration_ms:.1f}ms")
    print(f"Order: {' -> '.join(result.completed)}")
    print(f"Parts: {app.parts}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
