"""Structural invariant checks for a forest and its flat view.

Mainly for tests and debugging. The edit operations of `mutator.FlatForest` maintain these
invariants by themselves; a violation means that the forest was edited incorrectly from the outside.
"""

__all__ = ["validate"]

import logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from typing import Dict, List, Optional

from unpythonic import partition
from unpythonic.env import env

from .aliases import make_field_aliases
from .projector import flatten

def _count_nodes(forest: List[Dict], aliases: env) -> int:
    """Count the nodes reachable from `forest`, independently of `flatten`."""
    count = 0
    pending = list(forest)
    while pending:
        node = pending.pop()
        count += 1
        pending.extend(node.get(aliases.children) or [])
    return count

def validate(forest: List[Dict], aliases: Optional[env] = None) -> None:
    """Check that `forest` and its flat view satisfy the structural invariants.

    `aliases`: see `aliases.make_field_aliases`. Default is to use the default aliases.

    Checked:

      - Every node of the forest appears exactly once in the flat view.
      - Node IDs are unique.
      - For each non-root node, its list of siblings is the very same list object as the
        children of its parent, and the node is in it.
      - For each node, `siblings[index]` is that node.
      - Each stored list of children really is a `list` (the edit operations need to splice it).

    Raises `ValueError` describing all problems found. Returns `None` if all is well.
    """
    if aliases is None:
        aliases = make_field_aliases()

    flat_view, id_index = flatten(forest, aliases)  # raises on missing/duplicate IDs, and on shared nodes

    problems = []
    node_count = _count_nodes(forest, aliases)
    if len(flat_view) != node_count or len(id_index) != node_count:
        problems.append(f"forest has {node_count} nodes, but flat view has {len(flat_view)} and ID index has {len(id_index)}")

    roots, non_roots = partition(pred=lambda leaf: leaf.parent is not None,
                                 iterable=flat_view)
    for leaf in roots:
        if leaf.siblings is not forest:
            problems.append(f"root node {leaf.id!r}: siblings is not the list of roots")
    for leaf in non_roots:
        parent_children = leaf.parent.children
        if leaf.siblings is not parent_children:
            problems.append(f"node {leaf.id!r}: siblings is not the children list of parent {leaf.parent.id!r}")
        elif not any(child is leaf.node for child in parent_children):
            problems.append(f"node {leaf.id!r}: not found among the children of parent {leaf.parent.id!r}")

    for leaf in flat_view:
        index = leaf.index
        if index is None or leaf.siblings[index] is not leaf.node:
            problems.append(f"node {leaf.id!r}: index {index!r} does not point to the node itself")
        children = leaf.children
        if children is not None and not isinstance(children, list):
            problems.append(f"node {leaf.id!r}: children is a {type(children)}, not a list")

    if problems:
        plural_s = "s" if len(problems) != 1 else ""
        logger.warning(f"validate: found {len(problems)} problem{plural_s}.")
        raise ValueError(f"validate: {len(problems)} problem{plural_s}: " + "; ".join(problems))
