"""Projector: flatten a forest into a pre-order sequence of navigable views.

The forest is a list of root nodes; each node is a dict that has an ID, and optionally a list of child nodes::

    [{"id": 1, "children": [{"id": 2, "children": [{"id": 5}, {"id": 6}]},
                            {"id": 3}]}]

flattens (pre-order: node first, then its subtree, then the next sibling) into the views of nodes 1, 2, 5, 6, 3.

Each view is a `Leaf`. A `Leaf` does not copy the node; it only remembers where the node was found
(the list containing it, and the parent). Everything else (`index`, `prev`, `next`, `branch`) is
computed when read, from the live lists of the forest. Nothing is ever stored on the node itself,
so the forest remains plain JSON-like data.
"""

__all__ = ["Leaf", "flatten"]

import logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

import collections
from typing import Any, Dict, List, Optional, Tuple

from unpythonic.env import env

from .aliases import make_field_aliases

class Leaf:
    def __init__(self, node: Dict, siblings: List[Dict], parent: Optional["Leaf"], aliases: env):
        """View of `node`, as found in list `siblings` (either the children of `parent`, or the list of roots).

        `parent`: the `Leaf` of the parent node, or `None` for a root node.
        `aliases`: see `aliases.make_field_aliases`.

        You normally get these from `flatten`; there is no need to instantiate them manually.

        The bindings (`siblings`, `parent`) describe the forest as it was at the time of the walk.
        The derived relations are computed from those, when read. A node that is moved to a different
        list (e.g. by `promote` or `demote`) needs a new walk to get up-to-date bindings.

        Two leaves are equal if and only if they view the same node object.
        """
        self.node = node
        self._siblings = siblings
        self._parent = parent
        self._aliases = aliases

    @property
    def id(self) -> Any:
        return self.node.get(self._aliases.id)

    @property
    def children(self) -> Optional[List[Dict]]:
        """The list of child nodes as stored in the node (not a copy), or `None` if the node has no such field."""
        return self.node.get(self._aliases.children)

    @property
    def siblings(self) -> List[Dict]:
        """The list that contains this node: the `children` of the parent, or for a root node, the forest itself."""
        return self._siblings

    @property
    def parent(self) -> Optional["Leaf"]:
        return self._parent

    @property
    def index(self) -> Optional[int]:
        """Position of this node in `siblings`, looked up by ID.

        `None` if the node is no longer in `siblings` (it has been deleted or moved since the walk).
        """
        node_id = self.id
        for index, sibling in enumerate(self._siblings):
            if sibling.get(self._aliases.id) == node_id:
                return index
        return None

    @property
    def prev(self) -> Optional["Leaf"]:
        index = self.index
        if index is None or index == 0:
            return None
        return Leaf(self._siblings[index - 1], self._siblings, self._parent, self._aliases)

    @property
    def next(self) -> Optional["Leaf"]:
        index = self.index
        if index is None or index >= len(self._siblings) - 1:
            return None
        return Leaf(self._siblings[index + 1], self._siblings, self._parent, self._aliases)

    @property
    def branch(self) -> List["Leaf"]:
        """The path from the root down to and including this node, as a list of leaves (root first)."""
        path = collections.deque()
        leaf = self
        while leaf is not None:
            path.appendleft(leaf)
            leaf = leaf._parent
        return list(path)

    def __getitem__(self, key: str) -> Any:
        """Look up `key`: a relation (by its aliased key, e.g. `leaf["parent"]`), or else a field of the node.

        Relations take precedence. A node field that happens to have the same name as a relation key
        is still available as `leaf.node[key]`.
        """
        role = self._aliases.relation_keys.get(key)
        if role is not None:
            return getattr(self, role)
        return self.node[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Leaf):
            return NotImplemented
        return self.node is other.node

    def __hash__(self) -> int:
        return id(self.node)

    def __repr__(self) -> str:
        return f"<Leaf {self.id!r}>"

def flatten(forest: List[Dict], aliases: Optional[env] = None) -> Tuple[List[Leaf], Dict[Any, Leaf]]:
    """Walk `forest` in pre-order, and return `(flat_view, id_index)`.

    `forest`: list of root nodes.
    `aliases`: see `aliases.make_field_aliases`. Default is to use the default aliases.

    `flat_view`: list of `Leaf`, one per node, in pre-order. Children are visited in the order
                 they appear in the list of children; they are not sorted.
    `id_index`: node ID -> `Leaf`, for all nodes in `flat_view`.

    Each call makes fresh leaves; leaves from an earlier walk are never updated. This function
    does not modify `forest`.

    Raises `ValueError` if a node has no ID, if two nodes share the same ID, or if the same
    node object is reachable more than once (e.g. a shared subtree, or a cycle), because then
    `forest` is not a forest. Nothing is guessed in those cases.

    The walk is iterative, so arbitrarily deep forests are fine.
    """
    if aliases is None:
        aliases = make_field_aliases()

    flat_view = []
    seen = set()  # id() of each node object visited so far
    pending = [(node, forest, None) for node in reversed(forest)]  # stack: (node, siblings, parent_leaf)
    while pending:
        node, siblings, parent = pending.pop()
        if id(node) in seen:
            raise ValueError(f"flatten: node {node.get(aliases.id)!r} is reachable more than once; the data is not a forest")
        seen.add(id(node))

        leaf = Leaf(node, siblings, parent, aliases)
        flat_view.append(leaf)

        children = node.get(aliases.children)
        if children:
            pending.extend((child, children, leaf) for child in reversed(children))

    id_index = {}
    for leaf in flat_view:
        if aliases.id not in leaf.node:
            raise ValueError(f"flatten: node at branch {[other.id for other in leaf.branch[:-1]]} has no '{aliases.id}' field")
        if leaf.id in id_index:
            raise ValueError(f"flatten: duplicate node ID {leaf.id!r}")
        id_index[leaf.id] = leaf
    return flat_view, id_index
