"""Container tree reconstruction from a flat parent-reference list"""
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from adbrowser.models.directory import OrganizationalUnit, OUNode


class TreeBuildError(ValueError):
    """Raised when the container list is not a forest."""


def build_tree(units: Sequence[OrganizationalUnit]) -> List[OUNode]:
    """Build the container forest.

    Units whose parent is not part of the input are treated as roots.
    Children keep their input order.

    Args:
        units: Flat list of organizational units

    Returns:
        Root nodes with materialized children (None for leaves)

    Raises:
        TreeBuildError: on duplicate ids or units unreachable from any root (cycles)
    """
    ids = set()
    duplicates = []
    for unit in units:
        if unit.id in ids:
            duplicates.append(unit.id)
        ids.add(unit.id)
    if duplicates:
        raise TreeBuildError(f"Duplicate container ids: {', '.join(sorted(set(duplicates)))}")

    by_parent: Dict[Optional[str], List[OrganizationalUnit]] = defaultdict(list)
    for unit in units:
        parent_id = unit.parentID if unit.parentID in ids else None
        by_parent[parent_id].append(unit)

    # Pre-order walk from the roots with an explicit stack; depth is unbounded
    order: List[OrganizationalUnit] = []
    stack = list(reversed(by_parent.get(None, [])))
    while stack:
        unit = stack.pop()
        order.append(unit)
        stack.extend(reversed(by_parent.get(unit.id, [])))

    if len(order) != len(units):
        visited = {unit.id for unit in order}
        unreachable = [unit.id for unit in units if unit.id not in visited]
        raise TreeBuildError(
            f"Containers not reachable from any root (cyclic parents): {', '.join(unreachable)}"
        )

    # Children come after their parent in pre-order, so build in reverse
    nodes: Dict[str, OUNode] = {}
    for unit in reversed(order):
        children = [nodes[child.id] for child in by_parent.get(unit.id, [])]
        nodes[unit.id] = OUNode(id=unit.id, name=unit.name, children=children or None)

    return [nodes[unit.id] for unit in by_parent.get(None, [])]


def flatten_tree(nodes: Sequence[OUNode]) -> List[OUNode]:
    """Depth-first, pre-order list of every node in the forest."""
    result = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children or []))
    return result
