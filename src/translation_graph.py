import json
import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Tuple

import jsonschema

logger = logging.getLogger("locale_sync")

# The catalog is a JSON array of "source-target" way identifiers.
TRANSLATION_WAYS_SCHEMA = {
    "type": "array",
    "items": {
        "type": "string",
        "pattern": r"^[^-\s]+-[^-\s]+$"
    }
}


def load_translation_ways(file_path: str) -> List[str]:
    """
    Load the catalog of directly supported translation ways.

    Args:
        file_path: Path to a JSON file holding a list like ``["ru-en", "en-de"]``.

    Returns:
        The ways in file order. The order decides tie-breaking in ``next_hop``.

    Raises:
        ValueError: If the file is not valid JSON or does not match the schema.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            translation_ways = json.load(f)
        except json.JSONDecodeError as json_exc:
            raise ValueError(f"Translation ways file '{file_path}' is not valid JSON: {json_exc}") from json_exc

    try:
        jsonschema.validate(instance=translation_ways, schema=TRANSLATION_WAYS_SCHEMA)
    except jsonschema.ValidationError as validation_exc:
        raise ValueError(
            f"Translation ways file '{file_path}' is malformed: {validation_exc.message}"
        ) from validation_exc

    logger.info("Loaded %d translation ways from '%s'.", len(translation_ways), file_path)
    return translation_ways


def split_translation_way(way: str) -> Tuple[str, str]:
    """Split a ``"source-target"`` way identifier into its two language codes."""
    source_language, _, target_language = way.partition('-')
    if not source_language or not target_language:
        raise ValueError(f"Malformed translation way: '{way}'")
    return source_language, target_language


class TranslationGraph:
    """
    Supported language pairs of the translation service.

    Reachability is symmetric (every listed way links both languages), while
    ``is_directly_supported`` only honours the literal listed direction.
    """

    def __init__(self, translation_ways: Iterable[str]):
        self.translation_ways: List[str] = list(translation_ways)
        self._direct_pairs: Set[Tuple[str, str]] = set()
        self._adjacency: Dict[str, List[str]] = {}

        for way in self.translation_ways:
            source_language, target_language = split_translation_way(way)
            self._direct_pairs.add((source_language, target_language))
            self._link(source_language, target_language)
            self._link(target_language, source_language)

    @classmethod
    def from_file(cls, file_path: str) -> 'TranslationGraph':
        return cls(load_translation_ways(file_path))

    def _link(self, language: str, neighbour: str) -> None:
        neighbours = self._adjacency.setdefault(language, [])
        if neighbour not in neighbours:
            neighbours.append(neighbour)

    @property
    def languages(self) -> List[str]:
        return list(self._adjacency)

    def neighbours(self, language: str) -> List[str]:
        return list(self._adjacency.get(language, []))

    def is_directly_supported(self, source_language: str, target_language: str) -> bool:
        return (source_language, target_language) in self._direct_pairs

    def next_hop(self, source_language: str, target_language: str) -> Optional[str]:
        """
        Find the next language to translate into on the way to ``target_language``.

        Returns None when the pair is directly supported (no hop needed) and
        also when no chain exists. Callers tell the two apart with
        ``is_directly_supported``.
        """
        if self.is_directly_supported(source_language, target_language):
            return None

        visited = {source_language}
        queue = deque([source_language])
        while queue:
            current_language = queue.popleft()
            for next_language in self._adjacency.get(current_language, []):
                if next_language in visited:
                    continue
                if self.is_directly_supported(next_language, target_language):
                    return next_language
                visited.add(next_language)
                queue.append(next_language)
        return None
