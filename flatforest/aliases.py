"""Field aliasing: which storage key plays which logical role in a node.

The aliases are resolved once, into a static record, so that the rest of the code can just say
e.g. `node[aliases.children]`.
"""

__all__ = ["roles", "storage_roles", "relation_roles",
           "make_field_aliases"]

import logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from typing import Dict, Optional

from unpythonic.env import env

from . import config

storage_roles = ("id", "children")  # actually stored on the nodes
relation_roles = ("branch", "index", "next", "parent", "prev", "siblings")  # derived from the shape of the forest
roles = storage_roles + relation_roles

def make_field_aliases(overrides: Optional[Dict[str, str]] = None) -> env:
    """Resolve the storage key for each logical role.

    `overrides`: role name -> storage key, for any subset of `roles`.
                 Roles not mentioned get their key from `config.field_aliases`.

    Returns an `unpythonic.env.env` with one attribute per role (e.g. `aliases.children`), plus:

        `relation_keys`: storage key -> role name, for the derived roles (`relation_roles`) only.
                         Used for looking up a relation by its (possibly aliased) key.

    Raises `ValueError` if a role is unknown, or if two roles would share the same key,
    and `TypeError` if a key is not a string.
    """
    overrides = overrides or {}
    unknown_roles = [role for role in overrides if role not in roles]
    if unknown_roles:
        raise ValueError(f"make_field_aliases: unknown role(s) {unknown_roles}; valid roles: {list(roles)}")

    keys = {role: overrides.get(role, config.field_aliases[role]) for role in roles}
    for role, key in keys.items():
        if not isinstance(key, str):
            raise TypeError(f"make_field_aliases: storage key for role '{role}' must be a str, got {type(key)} with value {key!r}")

    roles_by_key = {}
    for role, key in keys.items():
        if key in roles_by_key:
            raise ValueError(f"make_field_aliases: roles '{roles_by_key[key]}' and '{role}' both map to key '{key}'; aliases must be pairwise distinct")
        roles_by_key[key] = role

    if overrides:
        logger.debug(f"make_field_aliases: using custom aliases {keys}")
    return env(relation_keys={keys[role]: role for role in relation_roles},
               **keys)
