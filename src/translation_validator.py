from typing import Any, Dict, List, Set, Tuple
import re
from collections import Counter

from src.tree_reconciliation import KeyPath, collect_key_paths, flatten_leaves

# Placeholders like {0}, {name} and {{count}}.
PLACEHOLDER_REGEX = re.compile(r'\{([^{}]+)\}')

# 'Ã' followed by a byte in 0x80-0xFF is UTF-8 text decoded as latin-1/cp1252.
MOJIBAKE_PATTERN = re.compile(r'Ã[\x80-\xff]')


def format_key_path(key_path: KeyPath) -> str:
    return '.'.join(key_path)


def check_key_coverage(base_keys: Set[KeyPath], target_keys: Set[KeyPath]) -> Tuple[Set[KeyPath], Set[KeyPath]]:
    """
    Compares the key paths of a locale tree against the main tree.

    Args:
        base_keys: Key paths of the main tree.
        target_keys: Key paths of the locale tree.

    Returns:
        A tuple containing two sets:
        - missing_keys: Key paths present in the main tree but missing from the locale tree.
        - extra_keys: Key paths present in the locale tree but absent from the main tree.
    """
    missing_keys = base_keys - target_keys
    extra_keys = target_keys - base_keys
    return missing_keys, extra_keys


def check_placeholder_parity(base_string: str, target_string: str) -> bool:
    """
    Checks if the placeholders are identical between a base and a translated string.
    Reordering is allowed; counts must match.
    """
    base_placeholders = Counter(PLACEHOLDER_REGEX.findall(base_string))
    target_placeholders = Counter(PLACEHOLDER_REGEX.findall(target_string))

    return base_placeholders == target_placeholders


def check_mojibake(text: str) -> bool:
    """True if ``text`` shows signs of a previous encoding/decoding error."""
    return bool(MOJIBAKE_PATTERN.search(text)) or '\uFFFD' in text


def find_key_coverage_errors(main_tree: Dict[str, Any], locale_tree: Dict[str, Any]) -> List[str]:
    """List missing and extra key paths of ``locale_tree`` relative to ``main_tree``."""
    missing_keys, extra_keys = check_key_coverage(
        set(collect_key_paths(main_tree)),
        set(collect_key_paths(locale_tree))
    )
    errors = [f"Missing key `{format_key_path(key)}`." for key in sorted(missing_keys)]
    errors.extend(f"Extra key `{format_key_path(key)}`." for key in sorted(extra_keys))
    return errors


def find_content_warnings(main_tree: Dict[str, Any], locale_tree: Dict[str, Any]) -> List[str]:
    """
    Check the text leaves of a locale tree against the main tree.

    Reports placeholder mismatches and mojibake. These do not block the sync;
    they point at translations that need a human look.
    """
    main_leaves = dict(flatten_leaves(main_tree))
    warnings = []
    for key_path, text in flatten_leaves(locale_tree):
        if check_mojibake(text):
            warnings.append(f"Potential mojibake in key `{format_key_path(key_path)}`.")
        main_text = main_leaves.get(key_path)
        if main_text is not None and not check_placeholder_parity(main_text, text):
            warnings.append(f"Placeholder mismatch for key `{format_key_path(key_path)}`.")
    return warnings
