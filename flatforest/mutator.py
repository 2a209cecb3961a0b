"""Mutator: structural editing of a forest, via a flat view.

The forest (a list of root nodes, owned by the caller) is the only source of truth. The flat view
and the ID index are derived from it (see `projector.flatten`), and are recomputed on every read,
so they always reflect the latest edit.
"""

__all__ = ["FlatForest", "create", "default_generate_id"]

import logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

import contextlib
import io
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from unpythonic import gensym

from . import config
from . import invariants
from .aliases import make_field_aliases
from .projector import Leaf, flatten

def default_generate_id() -> str:
    """Generate a new, globally unique node ID."""
    return str(gensym(config.node_id_prefix))  # string form for easy JSON-ability

class FlatForest:
    def __init__(self,
                 forest: Optional[List[Dict]] = None,
                 field_aliases: Optional[Dict[str, str]] = None,
                 generate_id: Optional[Callable[[], Any]] = None):
        """Flat view and structural editing for `forest`.

        `forest`: list of root nodes. Edited in place; this class keeps a reference, not a copy.
                  Each node is a dict that has a unique ID, and optionally a list of child nodes.
                  If not given, start with an empty forest.

        `field_aliases`: role name -> storage key, for any subset of the roles. See `aliases.make_field_aliases`.
                         E.g. `{"id": "uuid", "children": "items"}`.

        `generate_id`: 0-argument callable that returns a new node ID. Used by the insert operations.
                       Default is `default_generate_id`.

                       If you provide your own, it must never return an ID that is already in the forest.
                       This is checked at insertion time (`ValueError`), but it cannot be fixed for you.

        The forest is validated at construction time; duplicate IDs, or a node reachable
        more than once, raise `ValueError`.

        **Editing**

        Each edit operation takes the ID of the target node:

            `insert_sibling`, `insert_child`, `delete`, `move_up`, `move_down`, `promote`, `demote`.

        If there is no such node, or the edit does not make sense for that node (e.g. moving up the first
        sibling, or deleting a root node), the operation does nothing and returns `None`. These are
        ordinary situations in an interactive outliner, not errors.

        **Thread safety**

        Edits are performed while holding `self.lock` (a `threading.RLock`). If you edit the forest
        directly, and other threads use this instance, `with ff.lock` the dynamic extent where you do so.
        For grabbing a single node there is the convenient context manager `node`.
        """
        self.forest = forest if forest is not None else []
        self.aliases = make_field_aliases(field_aliases)
        self.generate_id = generate_id or default_generate_id
        self.lock = threading.RLock()
        self.project()  # fail fast on invalid input

    # --------------------------------------------------------------------------------
    # Projection

    def project(self) -> Tuple[List[Leaf], Dict[Any, Leaf]]:
        """Walk the forest now. Return `(flat_view, id_index)`. See `projector.flatten`."""
        with self.lock:
            return flatten(self.forest, self.aliases)

    @property
    def flat_view(self) -> List[Leaf]:
        """All nodes of the forest in pre-order, as `projector.Leaf` views. Recomputed on every read."""
        flat_view, _ = self.project()
        return flat_view

    @property
    def id_index(self) -> Dict[Any, Leaf]:
        """Node ID -> `projector.Leaf`. Recomputed on every read."""
        _, id_index = self.project()
        return id_index

    def _lookup(self, node_id: Any, operation: str) -> Optional[Leaf]:
        leaf = self.id_index.get(node_id)
        if leaf is None:
            logger.debug(f"FlatForest.{operation}: no such node {node_id!r}; nothing to do.")
        return leaf

    def _make_node(self, operation: str) -> Dict:
        new_id = self.generate_id()
        if new_id in self.id_index:
            raise ValueError(f"FlatForest.{operation}: generated ID {new_id!r} is already in use by another node")
        return {self.aliases.id: new_id}

    # --------------------------------------------------------------------------------
    # Editing

    def insert_sibling(self, node_id: Any) -> Optional[Any]:
        """Create a new empty node, and insert it as the next sibling of `node_id`.

        For a root node, the new node becomes the next root.

        Returns the ID of the new node, or `None` if `node_id` was not found.
        """
        with self.lock:
            leaf = self._lookup(node_id, "insert_sibling")
            if leaf is None:
                return None
            new_node = self._make_node("insert_sibling")
            leaf.siblings.insert(leaf.index + 1, new_node)
            new_id = new_node[self.aliases.id]
            logger.debug(f"FlatForest.insert_sibling: created node {new_id!r} after {node_id!r}.")
            return new_id

    def insert_child(self, node_id: Any) -> Optional[Any]:
        """Create a new empty node, and insert it as the first child of `node_id`.

        Returns the ID of the new node, or `None` if `node_id` was not found.
        """
        with self.lock:
            leaf = self._lookup(node_id, "insert_child")
            if leaf is None:
                return None
            new_node = self._make_node("insert_child")
            children = leaf.children
            if children is None:
                leaf.node[self.aliases.children] = [new_node]
            else:
                children.insert(0, new_node)
            new_id = new_node[self.aliases.id]
            logger.debug(f"FlatForest.insert_child: created node {new_id!r} as first child of {node_id!r}.")
            return new_id

    def delete(self, node_id: Any) -> Optional[Any]:
        """Delete the node `node_id`, along with its whole subtree.

        Root nodes cannot be deleted.

        Returns the ID of the node that should receive focus next: the next sibling if any,
        else the previous sibling if any, else the parent. (If, against expectation, none of them
        has an ID, the first node of the forest; or `None` if the forest is empty.)

        If `node_id` was not found, or it is a root node, returns `None`, and nothing is deleted.
        """
        with self.lock:
            leaf = self._lookup(node_id, "delete")
            if leaf is None:
                return None
            parent = leaf.parent
            if parent is None:
                logger.debug(f"FlatForest.delete: node {node_id!r} is a root node; root nodes cannot be deleted.")
                return None
            next_leaf = leaf.next
            prev_leaf = leaf.prev
            if next_leaf is not None:
                focus_id = next_leaf.id
            elif prev_leaf is not None:
                focus_id = prev_leaf.id
            else:
                focus_id = parent.id

            leaf.siblings.pop(leaf.index)
            logger.debug(f"FlatForest.delete: deleted node {node_id!r} and its subtree.")

            if focus_id is None:
                flat_view = self.flat_view
                focus_id = flat_view[0].id if flat_view else None
            return focus_id

    def move_up(self, node_id: Any) -> None:
        """Swap the node `node_id` with its previous sibling. The first sibling stays where it is."""
        with self.lock:
            leaf = self._lookup(node_id, "move_up")
            if leaf is None:
                return
            index = leaf.index
            if index == 0:
                logger.debug(f"FlatForest.move_up: node {node_id!r} is already the first sibling.")
                return
            siblings = leaf.siblings
            siblings[index - 1], siblings[index] = siblings[index], siblings[index - 1]

    def move_down(self, node_id: Any) -> None:
        """Swap the node `node_id` with its next sibling. The last sibling stays where it is."""
        with self.lock:
            leaf = self._lookup(node_id, "move_down")
            if leaf is None:
                return
            index = leaf.index
            siblings = leaf.siblings
            if index >= len(siblings) - 1:
                logger.debug(f"FlatForest.move_down: node {node_id!r} is already the last sibling.")
                return
            siblings[index], siblings[index + 1] = siblings[index + 1], siblings[index]

    def promote(self, node_id: Any) -> Optional[Any]:
        """Move the node `node_id` (with its subtree) one level up, to become the next sibling of its parent.

        Only possible when the parent is not a root node.

        Returns the ID of the former parent, or `None` if nothing was done.
        """
        with self.lock:
            leaf = self._lookup(node_id, "promote")
            if leaf is None:
                return None
            parent = leaf.parent
            if parent is None or parent.parent is None:
                logger.debug(f"FlatForest.promote: node {node_id!r} has no grandparent; cannot promote.")
                return None
            node = leaf.siblings.pop(leaf.index)
            parent.siblings.insert(parent.index + 1, node)
            logger.debug(f"FlatForest.promote: node {node_id!r} is now the next sibling of {parent.id!r}.")
            return parent.id

    def demote(self, node_id: Any) -> Optional[Any]:
        """Move the node `node_id` (with its subtree) one level down, to become the last child of its previous sibling.

        Only possible when there is a previous sibling.

        Returns the ID of the former previous sibling (the new parent), or `None` if nothing was done.
        """
        with self.lock:
            leaf = self._lookup(node_id, "demote")
            if leaf is None:
                return None
            prev_leaf = leaf.prev
            if prev_leaf is None:
                logger.debug(f"FlatForest.demote: node {node_id!r} is the first sibling; cannot demote.")
                return None
            node = leaf.siblings.pop(leaf.index)
            children = prev_leaf.children
            if children is None:
                prev_leaf.node[self.aliases.children] = [node]
            else:
                children.append(node)
            logger.debug(f"FlatForest.demote: node {node_id!r} is now the last child of {prev_leaf.id!r}.")
            return prev_leaf.id

    # Short names, as in the keyboard-driven outliners this was made for.
    leaves = flat_view
    up = move_up
    down = move_down
    left = promote
    right = demote
    remove = delete

    # --------------------------------------------------------------------------------
    # Direct access and debugging

    # Return type: https://stackoverflow.com/questions/49733699/python-type-hints-and-context-managers
    @contextlib.contextmanager
    def node(self, node_id: Any) -> Iterator[Dict]:
        """Context manager: get the node `node_id` in a thread-safe manner, for direct access.

        The forest is locked for the dynamic extent of the context.

        Unlike the edit operations, this raises `KeyError` if there is no such node.
        """
        with self.lock:
            leaf = self.id_index.get(node_id)
            if leaf is None:
                raise KeyError(f"FlatForest.node: no such node {node_id!r}")
            yield leaf.node

    def validate(self) -> None:
        """Check the structural invariants of the forest. Raise `ValueError` if broken. See `invariants.validate`."""
        with self.lock:
            invariants.validate(self.forest, self.aliases)

    def __str__(self) -> str:
        """Return a human-readable, multiline outline of the forest, one node per line. Mainly for debugging."""
        output = io.StringIO()
        storage_keys = (self.aliases.id, self.aliases.children)
        for leaf in self.flat_view:
            indent = "    " * (len(leaf.branch) - 1)
            fields = ", ".join(f"{key}: {value!r}" for key, value in leaf.node.items() if key not in storage_keys)
            output.write(f"{indent}{leaf.id}")
            if fields:
                output.write(f"  ({fields})")
            output.write("\n")
        return output.getvalue()

def create(forest: Optional[List[Dict]] = None,
           field_aliases: Optional[Dict[str, str]] = None,
           generate_id: Optional[Callable[[], Any]] = None) -> FlatForest:
    """Create a `FlatForest` for `forest`. Same arguments as the constructor."""
    return FlatForest(forest, field_aliases=field_aliases, generate_id=generate_id)
