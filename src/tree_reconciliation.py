import copy
from typing import Any, Dict, List, Sequence, Tuple

Tree = Dict[str, Any]
KeyPath = Tuple[str, ...]


def is_tree(value: Any) -> bool:
    """A tree is any mapping node; everything else is a leaf."""
    return isinstance(value, dict)


def get_difference(main_tree: Tree, secondary_tree: Tree) -> Tree:
    """
    Compute the part of the main tree that the secondary tree is missing.

    A key is included when it is absent from the secondary tree or when the
    two sides disagree on shape (subtree on one side, leaf on the other).
    Nested subtrees are included only if their own difference is non-empty.
    Keys that exist only in the secondary tree are ignored here.

    Args:
        main_tree: The authoritative tree.
        secondary_tree: The tree of a secondary locale.

    Returns:
        A new tree; neither input is modified.
    """
    difference: Tree = {}
    for key, main_value in main_tree.items():
        if key not in secondary_tree:
            difference[key] = copy.deepcopy(main_value)
            continue

        secondary_value = secondary_tree[key]
        if is_tree(main_value) and is_tree(secondary_value):
            nested_difference = get_difference(main_value, secondary_value)
            if nested_difference:
                difference[key] = nested_difference
        elif is_tree(main_value) != is_tree(secondary_value):
            difference[key] = copy.deepcopy(main_value)
    return difference


def merge_trees(secondary_tree: Tree, translated_tree: Tree) -> Tree:
    """
    Overlay translated values onto the secondary tree.

    Translated leaves replace existing ones, untouched leaves are kept and
    keys present only in ``translated_tree`` are appended.
    """
    merged: Tree = {}
    for key, secondary_value in secondary_tree.items():
        if key in translated_tree:
            translated_value = translated_tree[key]
            if is_tree(secondary_value) and is_tree(translated_value):
                merged[key] = merge_trees(secondary_value, translated_value)
            else:
                merged[key] = copy.deepcopy(translated_value)
        else:
            merged[key] = copy.deepcopy(secondary_value)

    for key, translated_value in translated_tree.items():
        if key not in secondary_tree:
            merged[key] = copy.deepcopy(translated_value)
    return merged


def remove_extra_keys(main_tree: Tree, merged_tree: Tree) -> Tree:
    """Drop every key of ``merged_tree`` that has no counterpart in ``main_tree``, at any depth."""
    result: Tree = {}
    for key, merged_value in merged_tree.items():
        if key not in main_tree:
            continue
        main_value = main_tree[key]
        if is_tree(main_value) and is_tree(merged_value):
            result[key] = remove_extra_keys(main_value, merged_value)
        else:
            result[key] = copy.deepcopy(merged_value)
    return result


def flatten_leaves(tree: Tree) -> List[Tuple[KeyPath, str]]:
    """
    List the text leaves of ``tree`` in depth-first order.

    Non-text leaves (numbers, booleans, None, lists) are skipped; they are
    carried over verbatim and never translated.
    """
    leaves: List[Tuple[KeyPath, str]] = []

    def _walk(node: Tree, prefix: KeyPath) -> None:
        for key, value in node.items():
            path = prefix + (key,)
            if is_tree(value):
                _walk(value, path)
            elif isinstance(value, str):
                leaves.append((path, value))

    _walk(tree, ())
    return leaves


def apply_leaf_values(tree: Tree, paths: Sequence[KeyPath], values: Sequence[Any]) -> Tree:
    """
    Return a copy of ``tree`` with ``values[i]`` written at ``paths[i]``.

    Raises:
        ValueError: If the number of values does not match the number of paths.
        KeyError: If a path does not lead to an existing leaf.
    """
    if len(paths) != len(values):
        raise ValueError(f"Got {len(values)} values for {len(paths)} leaf paths.")

    updated = copy.deepcopy(tree)
    for path, value in zip(paths, values):
        node = updated
        for key in path[:-1]:
            node = node[key]
        if path[-1] not in node:
            raise KeyError('.'.join(path))
        node[path[-1]] = value
    return updated


def collect_key_paths(tree: Tree) -> List[KeyPath]:
    """List every key path of ``tree``, subtrees included, in depth-first order."""
    key_paths: List[KeyPath] = []

    def _walk(node: Tree, prefix: KeyPath) -> None:
        for key, value in node.items():
            path = prefix + (key,)
            key_paths.append(path)
            if is_tree(value):
                _walk(value, path)

    _walk(tree, ())
    return key_paths
