"""
Runtime context for a graph run.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class RunContext:
    """
    State of one graph run.
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    results: dict[str, Any] = field(default_factory=dict)
    _node_started: dict[str, float] = field(default_factory=dict, init=False)

    def node_logger(self, node_name: str) -> logging.LoggerAdapter[logging.Logger]:
        """
        Create a logger for one node of this run.

        Args:
            node_name: Name of the node

        Returns:
            Logger adapter carrying ``run_id`` and ``node_name``
        """
        base_logger = logging.getLogger(f"initdag.node.{node_name}")
        return logging.LoggerAdapter(
            base_logger,
            {"run_id": self.run_id, "node_name": node_name},
        )

    def mark_running(self, node_name: str) -> None:
        """Record when a node's work was invoked."""
        self._node_started[node_name] = time.monotonic()

    def elapsed_ms(self, node_name: str) -> float:
        """Milliseconds since the node's work was invoked."""
        started = self._node_started.get(node_name)
        if started is None:
            return 0.0
        return (time.monotonic() - started) * 1000
