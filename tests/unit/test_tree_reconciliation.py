import copy
import unittest

from src.tree_reconciliation import (
    apply_leaf_values,
    collect_key_paths,
    flatten_leaves,
    get_difference,
    is_tree,
    merge_trees,
    remove_extra_keys,
)

# (main, secondary) pairs covering missing keys, extra keys, nested
# subtrees and shape mismatches in both directions.
TREE_PAIRS = [
    ({"greeting": "hi", "nested": {"a": "x"}}, {"greeting": "hola"}),
    ({"a": "1"}, {"a": "2", "b": "3"}),
    ({"a": {"b": "x", "c": {"d": "y"}}}, {"a": "old", "z": {"q": "w"}}),
    ({"a": "x"}, {"a": {"b": "old"}}),
    ({"menu": {"file": "File", "edit": {"copy": "Copy", "paste": "Paste"}}, "count": 3},
     {"menu": {"edit": {"copy": "Kopieren", "cut": "Ausschneiden"}}, "legacy": "Alt"}),
    ({}, {"a": "x"}),
    ({"empty": {}}, {}),
]


def key_structure(tree):
    return sorted(collect_key_paths(tree))


class TestGetDifference(unittest.TestCase):

    def test_missing_nested_subtree_is_included(self):
        main = {"greeting": "hi", "nested": {"a": "x"}}
        secondary = {"greeting": "hola"}
        self.assertEqual(get_difference(main, secondary), {"nested": {"a": "x"}})

    def test_extra_secondary_keys_are_ignored(self):
        self.assertEqual(get_difference({"a": "1"}, {"a": "2", "b": "3"}), {})

    def test_existing_leaves_are_not_retranslated(self):
        main = {"a": "new source text"}
        secondary = {"a": "old translation"}
        self.assertEqual(get_difference(main, secondary), {})

    def test_only_missing_nested_leaves_are_included(self):
        main = {"menu": {"file": "File", "edit": {"copy": "Copy", "paste": "Paste"}}}
        secondary = {"menu": {"file": "Datei", "edit": {"copy": "Kopieren"}}}
        self.assertEqual(get_difference(main, secondary), {"menu": {"edit": {"paste": "Paste"}}})

    def test_leaf_replaced_by_subtree_is_included(self):
        main = {"a": {"b": "x"}}
        secondary = {"a": "old"}
        self.assertEqual(get_difference(main, secondary), {"a": {"b": "x"}})

    def test_subtree_replaced_by_leaf_is_included(self):
        main = {"a": "x"}
        secondary = {"a": {"b": "old"}}
        self.assertEqual(get_difference(main, secondary), {"a": "x"})

    def test_empty_main_subtree_missing_from_secondary_is_included(self):
        self.assertEqual(get_difference({"empty": {}}, {}), {"empty": {}})
        self.assertEqual(get_difference({"empty": {}}, {"empty": {}}), {})

    def test_non_text_leaves_are_copied_by_presence(self):
        main = {"count": 3, "flag": True, "none": None, "items": ["a"]}
        self.assertEqual(get_difference(main, {}), main)
        self.assertEqual(get_difference(main, {"count": 4, "flag": False, "none": 1, "items": []}), {})

    def test_inputs_are_not_modified(self):
        main = {"a": {"b": "x"}}
        secondary = {"c": "y"}
        main_before, secondary_before = copy.deepcopy(main), copy.deepcopy(secondary)
        difference = get_difference(main, secondary)
        difference["a"]["b"] = "changed"
        self.assertEqual(main, main_before)
        self.assertEqual(secondary, secondary_before)

    def test_difference_contains_exactly_leaves_missing_or_reshaped(self):
        for main, secondary in TREE_PAIRS:
            with self.subTest(main=main, secondary=secondary):
                difference_paths = {path for path, _ in flatten_leaves(get_difference(main, secondary))}
                expected = set()
                for path, _ in flatten_leaves(main):
                    node = secondary
                    for key in path:
                        if not is_tree(node) or key not in node:
                            node = None
                            break
                        node = node[key]
                    if node is None or is_tree(node):
                        expected.add(path)
                self.assertEqual(difference_paths, expected)


class TestMergeTrees(unittest.TestCase):

    def test_translated_values_win_and_new_keys_are_added(self):
        secondary = {"greeting": "hola", "nested": {"b": "y"}}
        translated = {"nested": {"a": "es:x"}, "farewell": "adios"}
        self.assertEqual(
            merge_trees(secondary, translated),
            {"greeting": "hola", "nested": {"b": "y", "a": "es:x"}, "farewell": "adios"}
        )

    def test_translated_subtree_replaces_stale_leaf(self):
        self.assertEqual(merge_trees({"a": "old"}, {"a": {"b": "new"}}), {"a": {"b": "new"}})
        self.assertEqual(merge_trees({"a": {"b": "old"}}, {"a": "new"}), {"a": "new"})

    def test_merge_keeps_secondary_order(self):
        merged = merge_trees({"b": "1", "a": "2"}, {"c": "3", "a": "4"})
        self.assertEqual(list(merged), ["b", "a", "c"])
        self.assertEqual(merged["a"], "4")


class TestRemoveExtraKeys(unittest.TestCase):

    def test_extra_keys_are_removed_at_every_depth(self):
        main = {"a": "1", "nested": {"b": "2"}}
        merged = {"a": "x", "extra": "y", "nested": {"b": "z", "old": {"deep": "w"}}}
        self.assertEqual(remove_extra_keys(main, merged), {"a": "x", "nested": {"b": "z"}})

    def test_prune_leaves_reconciled_tree_unchanged(self):
        main = {"greeting": "hi", "nested": {"a": "x"}}
        merged = {"greeting": "hola", "nested": {"a": "es:x"}}
        self.assertEqual(remove_extra_keys(main, merged), merged)

    def test_reconciled_tree_has_key_structure_of_main(self):
        for main, secondary in TREE_PAIRS:
            with self.subTest(main=main, secondary=secondary):
                reconciled = remove_extra_keys(main, merge_trees(secondary, get_difference(main, secondary)))
                self.assertEqual(key_structure(reconciled), key_structure(main))

    def test_second_pass_has_nothing_left_to_translate(self):
        for main, secondary in TREE_PAIRS:
            with self.subTest(main=main, secondary=secondary):
                reconciled = remove_extra_keys(main, merge_trees(secondary, get_difference(main, secondary)))
                self.assertEqual(get_difference(main, reconciled), {})


class TestFlattenAndApply(unittest.TestCase):

    def test_flatten_is_depth_first_and_skips_non_text(self):
        tree = {"a": "1", "b": {"c": "2", "d": {"e": "3"}, "n": 5}, "f": "4", "g": None}
        self.assertEqual(
            flatten_leaves(tree),
            [(("a",), "1"), (("b", "c"), "2"), (("b", "d", "e"), "3"), (("f",), "4")]
        )

    def test_flatten_is_restartable(self):
        tree = {"a": {"b": "x"}}
        self.assertEqual(flatten_leaves(tree), flatten_leaves(tree))

    def test_apply_writes_values_by_position(self):
        tree = {"a": "1", "b": {"c": "2"}, "n": 5}
        leaves = flatten_leaves(tree)
        updated = apply_leaf_values(tree, [path for path, _ in leaves], ["one", "two"])
        self.assertEqual(updated, {"a": "one", "b": {"c": "two"}, "n": 5})
        self.assertEqual(tree, {"a": "1", "b": {"c": "2"}, "n": 5})

    def test_apply_rejects_length_mismatch(self):
        with self.assertRaises(ValueError):
            apply_leaf_values({"a": "1"}, [("a",)], [])

    def test_apply_rejects_unknown_path(self):
        with self.assertRaises(KeyError):
            apply_leaf_values({"a": "1"}, [("b",)], ["x"])

    def test_collect_key_paths_includes_subtrees(self):
        self.assertEqual(
            collect_key_paths({"a": {"b": "1"}, "c": 2}),
            [("a",), ("a", "b"), ("c",)]
        )


if __name__ == '__main__':
    unittest.main()
