"""Unit tests for flatforest.projector (flatten and Leaf)."""

import pytest

from flatforest.aliases import make_field_aliases
from flatforest.projector import Leaf, flatten


def ids(flat_view):
    return [leaf.id for leaf in flat_view]


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------

class TestFlatten:
    def test_preorder(self, sample_forest):
        flat_view, _ = flatten(sample_forest)
        assert ids(flat_view) == [1, 2, 5, 6, 3, 4, 7, 8, 9]

    def test_views_wrap_the_original_nodes(self, sample_forest):
        flat_view, _ = flatten(sample_forest)
        assert flat_view[0].node is sample_forest[0]
        assert flat_view[1].node is sample_forest[0]["children"][0]

    def test_id_index(self, sample_forest):
        flat_view, id_index = flatten(sample_forest)
        assert set(id_index.keys()) == {1, 2, 3, 4, 5, 6, 7, 8, 9}
        for leaf in flat_view:
            assert id_index[leaf.id] is leaf

    def test_multiple_roots(self):
        forest = [{"id": "a", "children": [{"id": "a1"}]},
                  {"id": "b"},
                  {"id": "c", "children": [{"id": "c1", "children": [{"id": "c11"}]}]}]
        flat_view, _ = flatten(forest)
        assert ids(flat_view) == ["a", "a1", "b", "c", "c1", "c11"]

    def test_empty_forest(self):
        flat_view, id_index = flatten([])
        assert flat_view == []
        assert id_index == {}

    def test_empty_children_list_is_a_leaf(self):
        flat_view, _ = flatten([{"id": 1, "children": []}, {"id": 2}])
        assert ids(flat_view) == [1, 2]

    def test_children_order_is_not_sorted(self):
        forest = [{"id": 1, "children": [{"id": 30}, {"id": 10}, {"id": 20}]}]
        flat_view, _ = flatten(forest)
        assert ids(flat_view) == [1, 30, 10, 20]

    def test_does_not_modify_forest(self, sample_forest):
        before = repr(sample_forest)
        flatten(sample_forest)
        assert repr(sample_forest) == before
        assert "parent" not in sample_forest[0]

    def test_idempotent(self, sample_forest):
        first, _ = flatten(sample_forest)
        second, _ = flatten(sample_forest)
        assert ids(first) == ids(second)
        assert first == second  # same nodes

    def test_each_walk_makes_fresh_views(self, sample_forest):
        first, _ = flatten(sample_forest)
        second, _ = flatten(sample_forest)
        assert first[0] is not second[0]

    def test_deep_forest(self):
        depth = 5000
        root = {"id": 0}
        node = root
        for k in range(1, depth):
            child = {"id": k}
            node["children"] = [child]
            node = child
        flat_view, id_index = flatten([root])
        assert len(flat_view) == depth
        assert ids(id_index[depth - 1].branch) == list(range(depth))

    def test_wide_forest(self):
        forest = [{"id": "root", "children": [{"id": k} for k in range(1000)]}]
        flat_view, _ = flatten(forest)
        assert ids(flat_view) == ["root"] + list(range(1000))


class TestFlattenInvalidInput:
    def test_duplicate_id_raises(self):
        forest = [{"id": 1, "children": [{"id": 2}]}, {"id": 2}]
        with pytest.raises(ValueError):
            flatten(forest)

    def test_missing_id_raises(self):
        forest = [{"id": 1, "children": [{"name": "anonymous"}]}]
        with pytest.raises(ValueError):
            flatten(forest)

    def test_shared_node_raises(self):
        shared = {"id": "s"}
        forest = [{"id": 1, "children": [shared]}, {"id": 2, "children": [shared]}]
        with pytest.raises(ValueError):
            flatten(forest)

    def test_cycle_raises(self):
        node = {"id": 1, "children": []}
        node["children"].append(node)
        with pytest.raises(ValueError):
            flatten([node])


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

class TestRelations:
    def test_relations_of_node_6(self, sample_forest):
        _, id_index = flatten(sample_forest)
        six = id_index[6]
        assert six.prev.id == 5
        assert six.next is None
        assert six.parent.id == 2
        assert six.index == 1
        assert ids(six.branch) == [1, 2, 6]

    def test_relations_of_middle_child(self, sample_forest):
        _, id_index = flatten(sample_forest)
        eight = id_index[8]
        assert eight.prev.id == 7
        assert eight.next.id == 9
        assert eight.index == 1
        assert eight.parent.id == 4

    def test_first_sibling_has_no_prev(self, sample_forest):
        _, id_index = flatten(sample_forest)
        assert id_index[5].prev is None
        assert id_index[5].index == 0

    def test_root_relations(self, sample_forest):
        _, id_index = flatten(sample_forest)
        root = id_index[1]
        assert root.parent is None
        assert root.siblings is sample_forest
        assert root.index == 0
        assert root.prev is None
        assert root.next is None
        assert ids(root.branch) == [1]

    def test_root_siblings_in_multi_root_forest(self):
        forest = [{"id": "a"}, {"id": "b"}]
        _, id_index = flatten(forest)
        assert id_index["a"].next.id == "b"
        assert id_index["b"].prev.id == "a"
        assert id_index["b"].parent is None

    def test_siblings_is_the_live_children_list(self, sample_forest):
        _, id_index = flatten(sample_forest)
        node_2 = sample_forest[0]["children"][0]
        assert id_index[6].siblings is node_2["children"]
        assert id_index[6].siblings is id_index[2].children

    def test_children_of_leaf_node_is_none(self, sample_forest):
        _, id_index = flatten(sample_forest)
        assert id_index[3].children is None

    def test_parent_is_the_parent_view(self, sample_forest):
        flat_view, id_index = flatten(sample_forest)
        assert id_index[6].parent is id_index[2]

    def test_prev_and_next_compare_equal_to_indexed_views(self, sample_forest):
        _, id_index = flatten(sample_forest)
        assert id_index[8].prev == id_index[7]
        assert id_index[8].next == id_index[9]
        assert id_index[8].next != id_index[7]


class TestLiveRelations:
    def test_index_follows_sibling_insertion(self, sample_forest):
        _, id_index = flatten(sample_forest)
        six = id_index[6]
        six.siblings.insert(0, {"id": "x"})
        assert six.index == 2
        assert six.prev.id == 5
        assert id_index[5].prev.id == "x"

    def test_index_follows_swap(self, sample_forest):
        _, id_index = flatten(sample_forest)
        siblings = id_index[7].siblings
        siblings[0], siblings[2] = siblings[2], siblings[0]
        assert id_index[7].index == 2
        assert id_index[7].next is None
        assert id_index[9].index == 0

    def test_removed_node_has_no_index(self, sample_forest):
        _, id_index = flatten(sample_forest)
        eight = id_index[8]
        eight.siblings.pop(eight.index)
        assert eight.index is None
        assert eight.prev is None
        assert eight.next is None

    def test_moved_node_gets_fresh_bindings_on_next_walk(self, sample_forest):
        _, id_index = flatten(sample_forest)
        six = id_index[6]
        node_6 = six.siblings.pop(six.index)
        node_3 = sample_forest[0]["children"][1]
        node_3["children"] = [node_6]

        _, id_index = flatten(sample_forest)
        assert id_index[6].parent.id == 3
        assert id_index[6].siblings is node_3["children"]
        assert ids(id_index[6].branch) == [1, 3, 6]


# ---------------------------------------------------------------------------
# Lookup by key, and aliases
# ---------------------------------------------------------------------------

class TestLeafLookup:
    def test_relation_by_key(self, sample_forest):
        _, id_index = flatten(sample_forest)
        six = id_index[6]
        assert six["parent"].id == 2
        assert six["prev"].id == 5
        assert six["next"] is None
        assert six["index"] == 1
        assert ids(six["branch"]) == [1, 2, 6]
        assert six["siblings"] is six.siblings

    def test_payload_by_key(self):
        _, id_index = flatten([{"id": 1, "title": "Groceries"}])
        assert id_index[1]["title"] == "Groceries"
        assert id_index[1]["id"] == 1

    def test_missing_payload_key_raises(self, sample_forest):
        _, id_index = flatten(sample_forest)
        with pytest.raises(KeyError):
            id_index[1]["title"]

    def test_get_with_default(self, sample_forest):
        _, id_index = flatten(sample_forest)
        assert id_index[1].get("title") is None
        assert id_index[1].get("title", "untitled") == "untitled"
        assert id_index[6].get("parent").id == 2

    def test_relation_shadows_payload_field(self):
        _, id_index = flatten([{"id": 1, "children": [{"id": 2, "parent": "payload"}]}])
        two = id_index[2]
        assert two["parent"].id == 1
        assert two.node["parent"] == "payload"

    def test_repr(self, sample_forest):
        _, id_index = flatten(sample_forest)
        assert repr(id_index[6]) == "<Leaf 6>"


class TestAliases:
    @pytest.fixture
    def aliased(self):
        forest = [{"uuid": "r", "items": [{"uuid": "a"}, {"uuid": "b", "items": [{"uuid": "b1"}]}]}]
        aliases = make_field_aliases({"id": "uuid", "children": "items", "parent": "up", "prev": "before"})
        return forest, aliases

    def test_preorder_with_aliases(self, aliased):
        forest, aliases = aliased
        flat_view, _ = flatten(forest, aliases)
        assert ids(flat_view) == ["r", "a", "b", "b1"]

    def test_relations_with_aliases(self, aliased):
        forest, aliases = aliased
        _, id_index = flatten(forest, aliases)
        b1 = id_index["b1"]
        assert b1["up"].id == "b"
        assert id_index["b"]["before"].id == "a"
        assert b1.children is None
        assert id_index["b"].children is forest[0]["items"][1]["items"]

    def test_unaliased_relation_name_is_a_plain_field(self, aliased):
        forest, aliases = aliased
        _, id_index = flatten(forest, aliases)
        with pytest.raises(KeyError):
            id_index["b1"]["parent"]

    def test_default_key_ignored_when_aliased(self):
        forest = [{"uuid": 1, "children": [{"uuid": 2}]}]
        aliases = make_field_aliases({"id": "uuid", "children": "items"})
        flat_view, _ = flatten(forest, aliases)
        assert ids(flat_view) == [1]


class TestLeafDirect:
    def test_manual_construction(self):
        aliases = make_field_aliases()
        siblings = [{"id": "a"}, {"id": "b"}]
        leaf = Leaf(siblings[1], siblings, None, aliases)
        assert leaf.index == 1
        assert leaf.prev.id == "a"
        assert leaf.parent is None

    def test_hashable(self, sample_forest):
        flat_view, _ = flatten(sample_forest)
        again, _ = flatten(sample_forest)
        assert set(flat_view) == set(again)
        assert len(set(flat_view)) == 9
