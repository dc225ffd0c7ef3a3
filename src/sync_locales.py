import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from src.app_config import AppConfig, load_app_config
from src.locale_store import read_translations, write_translations
from src.translation_client import TranslationServiceClient
from src.translation_dispatcher import TranslationDispatcher
from src.translation_graph import TranslationGraph
from src.translation_validator import find_content_warnings, find_key_coverage_errors
from src.tree_reconciliation import (
    apply_leaf_values,
    collect_key_paths,
    flatten_leaves,
    get_difference,
    merge_trees,
    remove_extra_keys,
)

logger = logging.getLogger("locale_sync")


class LocaleSyncError(Exception):
    """A locale could not be brought in line with the main locale."""


@dataclass
class LocaleSyncResult:
    locale: str
    translated_count: int = 0
    removed_count: int = 0
    warnings: list = field(default_factory=list)


@dataclass
class SyncReport:
    main_locale: str
    results: Dict[str, LocaleSyncResult] = field(default_factory=dict)

    @property
    def translated_count(self) -> int:
        return sum(result.translated_count for result in self.results.values())

    @property
    def removed_count(self) -> int:
        return sum(result.removed_count for result in self.results.values())


class LocaleSynchronizer:
    """Brings every secondary locale tree in line with the main locale tree."""

    def __init__(self, dispatcher: TranslationDispatcher, main_locale: str):
        self.dispatcher = dispatcher
        self.main_locale = main_locale

    async def sync_locale(self, translations: Dict[str, Dict[str, Any]], locale: str) -> LocaleSyncResult:
        """
        Reconcile ``translations[locale]`` with the main tree, in place.

        Missing or reshaped leaves are translated from the main locale, the
        results are merged into the existing tree, and keys the main tree no
        longer has are removed.
        """
        result = LocaleSyncResult(locale=locale)
        if locale == self.main_locale:
            return result

        main_tree = translations[self.main_locale]
        locale_tree = translations[locale]

        difference = get_difference(main_tree, locale_tree)
        leaves = flatten_leaves(difference)
        paths = [path for path, _ in leaves]
        texts = [text for _, text in leaves]

        if texts:
            logger.info("Locale '%s': %d text(s) to translate.", locale, len(texts))
            translated_texts = await self.dispatcher.translate(texts, self.main_locale, locale)
        else:
            logger.info("Locale '%s': nothing to translate.", locale)
            translated_texts = []

        translated_difference = apply_leaf_values(difference, paths, translated_texts)
        merged = merge_trees(locale_tree, translated_difference)
        reconciled = remove_extra_keys(main_tree, merged)

        coverage_errors = find_key_coverage_errors(main_tree, reconciled)
        if coverage_errors:
            for error in coverage_errors:
                logger.error("  - %s", error)
            raise LocaleSyncError(f"Locale '{locale}' does not match the key structure of '{self.main_locale}'.")

        result.translated_count = len(texts)
        result.removed_count = len(collect_key_paths(merged)) - len(collect_key_paths(reconciled))
        result.warnings = find_content_warnings(main_tree, reconciled)
        for warning in result.warnings:
            logger.warning("Locale '%s': %s", locale, warning)
        if result.removed_count:
            logger.info("Locale '%s': removed %d key(s) missing from '%s'.",
                        locale, result.removed_count, self.main_locale)

        translations[locale] = reconciled
        return result

    async def sync_all(self, translations: Dict[str, Dict[str, Any]]) -> SyncReport:
        """
        Reconcile every secondary locale, one after the other, in mapping order.

        Raises:
            LocaleSyncError: If the main locale is not among ``translations``.
        """
        if self.main_locale not in translations:
            raise LocaleSyncError(f"Main locale '{self.main_locale}' has no translation file.")

        report = SyncReport(main_locale=self.main_locale)
        for locale in list(translations):
            if locale == self.main_locale:
                continue
            report.results[locale] = await self.sync_locale(translations, locale)
        return report


async def main(app_config: Optional[AppConfig] = None) -> SyncReport:
    """
    Load the locale files, synchronize them and write them back once.
    """
    if app_config is None:
        app_config = load_app_config()

    graph = TranslationGraph.from_file(app_config.translation_ways_file)
    translations = read_translations(app_config.locales_folder)

    async with TranslationServiceClient(
        app_config.service_url,
        timeout=app_config.request_timeout,
        max_requests_per_minute=app_config.max_requests_per_minute
    ) as client:
        dispatcher = TranslationDispatcher(
            client,
            graph,
            chunk_size=app_config.chunk_size,
            use_translation_ways=app_config.use_translation_ways,
            max_transport_retries=app_config.max_transport_retries,
            retry_base_delay=app_config.retry_base_delay,
            max_internal_error_retries=app_config.max_internal_error_retries,
            main_locale=app_config.main_locale,
            show_progress=app_config.show_progress
        )
        synchronizer = LocaleSynchronizer(dispatcher, app_config.main_locale)
        report = await synchronizer.sync_all(translations)

    logger.info("Translated %d text(s) and removed %d key(s) across %d locale(s).",
                report.translated_count, report.removed_count, len(report.results))

    if app_config.dry_run:
        logger.info("[Dry Run] Would write %d locale file(s) to '%s'.",
                    len(translations), app_config.locales_folder)
    else:
        write_translations(app_config.locales_folder, translations)
    return report


def run() -> int:
    """Console entry point."""
    try:
        asyncio.run(main())
    except Exception as main_exc:
        logger.exception("Locale sync aborted: %s", main_exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(run())
