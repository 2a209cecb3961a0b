"""Configuration for flatforest.

These are the defaults; a `FlatForest` instance can override them via its constructor arguments.
"""

# Storage key for each logical role.
#
# "id" and "children" are actually stored on the nodes. The rest ("branch", "index", "next", "parent",
# "prev", "siblings") are relations derived from the current shape of the forest; they are never stored,
# but they are looked up by these keys, too (see `projector.Leaf.__getitem__`).
#
# Override any subset per instance, e.g. `FlatForest(forest, field_aliases={"children": "items"})`.
field_aliases = {"id": "id",
                 "children": "children",
                 "branch": "branch",
                 "index": "index",
                 "next": "next",
                 "parent": "parent",
                 "prev": "prev",
                 "siblings": "siblings"}

# Human-readable part of the IDs generated for new nodes (see `unpythonic.gensym`).
node_id_prefix = "flatforest-node"
