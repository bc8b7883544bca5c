"""
Dependency resolution and the wait-sets that drive execution.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from initdag.events import Signal
from initdag.node import NodeDefinition

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WaitSet:
    """
    Signals a node still waits for before its work may run.

    Fixed once armed; ``observe`` reports satisfaction exactly once.
    """

    node: NodeDefinition
    pending: set[str] = field(default_factory=set)
    fired: bool = False

    def observe(self, signal: str) -> bool:
        """
        Record a signal.

        Args:
            signal: Name of the signal that fired

        Returns:
            True if this was the last signal the node waited for
        """
        if self.fired or signal not in self.pending:
            return False
        self.pending.discard(signal)
        if not self.pending:
            self.fired = True
            return True
        return False


def promote_conditional_dependencies(nodes: Iterable[NodeDefinition], names: list[str]) -> None:
    """
    Turn conditional dependencies into hard ones when they are registered.

    Conditional dependencies naming a node not in ``names`` are dropped.

    Args:
        nodes: Registered node definitions
        names: Snapshot of registered names taken before any rewrite
    """
    present = set(names)
    for node in nodes:
        for dependency in node.conditional_depends:
            if dependency in present:
                node.add_dependency(dependency)
            else:
                logger.debug(
                    "Dropping conditional dependency %r of node %r: not registered",
                    dependency,
                    node.name,
                )


def arm_wait_sets(nodes: Iterable[NodeDefinition]) -> dict[str, list[WaitSet]]:
    """
    Build a wait-set per node, indexed by the signals it waits for.

    Every wait-set contains the start signal next to the node's hard
    dependencies.

    Returns:
        Mapping of signal name to the wait-sets observing it
    """
    index: dict[str, list[WaitSet]] = {}
    for node in nodes:
        wait_set = WaitSet(node=node, pending=set(node.depends) | {Signal.START.value})
        for signal in wait_set.pending:
            index.setdefault(signal, []).append(wait_set)
    return index


def resolve(nodes: list[NodeDefinition], names: list[str]) -> dict[str, list[WaitSet]]:
    """
    Resolve conditional dependencies and arm the wait-sets for one run.

    Args:
        nodes: Registered node definitions
        names: Snapshot of registered names

    Returns:
        Mapping of signal name to the wait-sets observing it
    """
    promote_conditional_dependencies(nodes, names)
    return arm_wait_sets(nodes)
