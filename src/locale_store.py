import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger("locale_sync")

LOCALE_FILE_SUFFIX = '.json'


class LocaleFileError(Exception):
    """A locale file could not be read or does not hold a JSON object."""


def locale_file_path(locales_folder: str, locale: str) -> str:
    return os.path.join(locales_folder, f"{locale}{LOCALE_FILE_SUFFIX}")


def read_translations(locales_folder: str) -> Dict[str, Dict[str, Any]]:
    """
    Load every ``<locale>.json`` file of the locales folder.

    Args:
        locales_folder: Folder holding one JSON file per locale.

    Returns:
        A mapping from locale code to its translation tree, in file name order.
        An empty file yields an empty tree.

    Raises:
        LocaleFileError: If a file is not valid JSON or its top level is not an object.
    """
    translations: Dict[str, Dict[str, Any]] = {}
    for filename in sorted(os.listdir(locales_folder)):
        if not filename.endswith(LOCALE_FILE_SUFFIX):
            continue
        locale = filename[:-len(LOCALE_FILE_SUFFIX)]
        file_path = os.path.join(locales_folder, filename)

        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        if not content.strip():
            content = '{}'
        try:
            tree = json.loads(content)
        except json.JSONDecodeError as json_exc:
            raise LocaleFileError(f"Error decoding JSON locale file '{file_path}': {json_exc}") from json_exc
        if not isinstance(tree, dict):
            raise LocaleFileError(f"Locale file '{file_path}' must contain a JSON object.")

        translations[locale] = tree
        logger.debug("Loaded locale '%s' from '%s'.", locale, file_path)

    logger.info("Loaded %d locale file(s) from '%s'.", len(translations), locales_folder)
    return translations


def write_translations(locales_folder: str, translations: Dict[str, Dict[str, Any]]) -> None:
    """Write every translation tree back to ``<locale>.json``, pretty-printed with two spaces."""
    os.makedirs(locales_folder, exist_ok=True)
    for locale, tree in translations.items():
        file_path = locale_file_path(locales_folder, locale)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(tree, f, ensure_ascii=False, indent=2)
            f.write('\n')
        logger.debug("Wrote locale '%s' to '%s'.", locale, file_path)
    logger.info("Wrote %d locale file(s) to '%s'.", len(translations), locales_folder)
