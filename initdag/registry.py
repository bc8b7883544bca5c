"""
Ordered registry of node definitions.
"""

import logging
from typing import Any, Iterator, Optional

from initdag.node import NodeDefinition
from initdag.validation import check_node_name, is_name_list

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Node definitions in registration order, with one binding slot per name.

    Registration order is kept for listing and removal only; it has no
    effect on the order nodes run in.
    """

    def __init__(self, strict_names: bool = True) -> None:
        """
        Initialize an empty registry.

        Args:
            strict_names: Reject a second registration of an existing name
        """
        self.strict_names = strict_names
        self._nodes: list[NodeDefinition] = []
        self._bindings: dict[str, Any] = {}

    def register(self, node: NodeDefinition, context: Any = None) -> None:
        """
        Append a node and record the context its work is bound to.

        Args:
            node: Node definition
            context: Receiver for the node's work; ``None`` leaves the
                choice to the caller of ``binding``

        Raises:
            RegistrationError: If the name is reserved, or already taken
                while ``strict_names`` is set
        """
        check_node_name(node.name, self.list_names(), strict=self.strict_names)
        # Duplicate names share this slot; the last registration wins
        self._bindings[node.name] = context
        self._nodes.append(node)

    def deregister(self, names: Any) -> bool:
        """
        Remove every node whose name appears in ``names``.

        Malformed input (not a list or tuple, or holding a non-string) is
        ignored as a whole.

        Args:
            names: Node names to remove

        Returns:
            True if the input was accepted
        """
        if not is_name_list(names):
            logger.debug("Ignoring deregister of malformed names %r", names)
            return False

        wanted = set(names)
        self._nodes = [node for node in self._nodes if node.name not in wanted]
        for name in wanted:
            if not any(node.name == name for node in self._nodes):
                self._bindings.pop(name, None)
        return True

    def remove(self, node: NodeDefinition) -> None:
        """Remove one definition by identity; unknown nodes are ignored."""
        for index, registered in enumerate(self._nodes):
            if registered is node:
                del self._nodes[index]
                return

    def binding(self, name: str) -> Optional[Any]:
        """Context recorded for ``name``, or None."""
        return self._bindings.get(name)

    def list_names(self) -> list[str]:
        """Names of registered nodes in registration order (a fresh list)."""
        return [node.name for node in self._nodes]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[NodeDefinition]:
        return iter(list(self._nodes))

    def __contains__(self, name: object) -> bool:
        return any(node.name == name for node in self._nodes)
