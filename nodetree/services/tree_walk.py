"""Ancestor walk over the parent-pointer tree, and node-id token validation.

Both are pure: the walk takes a lookup callable instead of a session so it can
be driven by the repository, an in-memory dict, or a test double.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional
from urllib.parse import unquote

from ..models.node import NodeType

# Parent id of top-level nodes (the implicit synthetic root).
ROOT_PID = 0

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass
class AncestorWalk:
    """Result of walking parent pointers upward from ``start_id``.

    ``nodes`` is ordered from the start node upward. ``start_found`` is False
    when the start node itself does not exist. ``broken`` marks a walk that
    stopped on a missing ancestor or a revisited id.
    """

    start_id: int
    nodes: List[Any] = field(default_factory=list)
    start_found: bool = True
    broken: bool = False

    @property
    def ids(self) -> List[int]:
        return [node.id for node in self.nodes]


def walk_ancestors(
    start_id: int,
    lookup: Callable[[int], Optional[Any]],
    stop_after: Optional[Callable[[Any], bool]] = None,
    stop_at_root_type: bool = True,
) -> AncestorWalk:
    """Walk from *start_id* to the top of the tree.

    Stops when the parent id is 0, when a node of type ``root`` has been
    included (unless *stop_at_root_type* is False), after including a node for
    which *stop_after* returns True, when a lookup misses, or when an id would
    be visited twice.
    """
    walk = AncestorWalk(start_id=start_id)
    visited: set = set()
    current_id = start_id

    while current_id > ROOT_PID:
        if current_id in visited:
            walk.broken = True
            break

        node = lookup(current_id)
        if node is None:
            if current_id == start_id:
                walk.start_found = False
            else:
                walk.broken = True
            break

        visited.add(current_id)
        walk.nodes.append(node)

        if stop_after is not None and stop_after(node):
            break
        if stop_at_root_type and node.type == NodeType.ROOT.value:
            break

        current_id = int(node.pid or 0)

    return walk


def is_insecure_path(token: str) -> bool:
    """True if a request token contains control characters or traversal sequences."""
    if _CONTROL_CHARS.search(token):
        return True

    for candidate in {token, unquote(token)}:
        if _CONTROL_CHARS.search(candidate):
            return True
        path = re.sub(r"/+", "/", candidate.replace("\\", "/"))
        if path == ".." or path.startswith("../") or path.endswith("/..") or "/../" in path:
            return True

    return False
