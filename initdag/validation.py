"""
Input policy for registering and removing nodes.

The permissive and strict rules both live here so the registry and the
engine never make these decisions themselves.
"""

from typing import Any, Iterable

from initdag.errors import RegistrationError
from initdag.events import RESERVED_NAMES


def check_node_name(name: Any, registered: Iterable[str], strict: bool = True) -> None:
    """
    Validate a node name before it is registered.

    Args:
        name: Proposed node name
        registered: Names already in the registry
        strict: Reject names that are already registered

    Raises:
        RegistrationError: If the name is not a non-empty string, is reserved,
            or (in strict mode) is already registered
    """
    if not isinstance(name, str) or not name:
        raise RegistrationError(f"Node name must be a non-empty string, got {name!r}")
    if name in RESERVED_NAMES:
        raise RegistrationError(
            f"Node name '{name}' is reserved for graph signals",
            node_name=name,
        )
    if strict and name in registered:
        raise RegistrationError(
            f"Node '{name}' is already registered",
            node_name=name,
        )


def is_name_list(names: Any) -> bool:
    """
    Check that ``names`` is a list or tuple made only of strings.

    Anything else makes ``deregister`` a silent no-op.
    """
    if not isinstance(names, (list, tuple)):
        return False
    return all(isinstance(name, str) for name in names)
