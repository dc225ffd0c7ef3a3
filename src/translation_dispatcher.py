import asyncio
import enum
import logging
import random
from typing import FrozenSet, List, Optional, Sequence, Tuple

import httpx
from tqdm import tqdm

from src.translation_client import (
    NoTranslationPathError,
    ServiceInternalError,
    TranslationRetriesExhaustedError,
    TranslationServiceClient,
    UnsupportedLanguagePairError,
)
from src.translation_graph import TranslationGraph

logger = logging.getLogger("locale_sync")

# Largest number of texts the translation service accepts in one request.
DEFAULT_CHUNK_SIZE = 5


class TranslationMode(enum.Enum):
    DIRECT_ONLY = "direct-only"
    INDIRECT_ENABLED = "indirect-enabled"


async def _handle_retry(attempt: int, max_retries: int, base_delay: float, label: str) -> bool:
    """
    Wait before the next attempt using exponential backoff with jitter.

    Args:
        attempt (int): The number of the attempt that just failed.
        max_retries (int): The maximum number of attempts.
        base_delay (float): The base delay in seconds.
        label (str): Describes the request in log messages.

    Returns:
        bool: True if the caller should retry, False once attempts are used up.
    """
    if attempt < max_retries:
        delay = base_delay * (2 ** (attempt - 1)) + random.uniform(0, 1)
        logger.info("Retrying %s in %.2f seconds (Attempt %d/%d)", label, delay, attempt, max_retries)
        await asyncio.sleep(delay)
        return True
    logger.error("Translation %s failed after %d attempts.", label, max_retries)
    return False


class TranslationDispatcher:
    """
    Turns lists of texts into translated lists through the translation service.

    Texts are sent in fixed-size chunks, one request at a time. A pair the
    service does not support directly is routed through intermediate
    languages found in the ``TranslationGraph``; that routing is switched on
    the first time the service rejects a pair and stays on for the rest of
    the run.
    """

    def __init__(
            self,
            client: TranslationServiceClient,
            graph: TranslationGraph,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            use_translation_ways: bool = False,
            max_transport_retries: int = 5,
            retry_base_delay: float = 1.0,
            max_internal_error_retries: Optional[int] = None,
            main_locale: Optional[str] = None,
            show_progress: bool = True
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be a positive integer.")
        self.client = client
        self.graph = graph
        self.chunk_size = chunk_size
        self.max_transport_retries = max_transport_retries
        self.retry_base_delay = retry_base_delay
        self.max_internal_error_retries = max_internal_error_retries
        self.main_locale = main_locale
        self.show_progress = show_progress
        self.mode = TranslationMode.INDIRECT_ENABLED if use_translation_ways else TranslationMode.DIRECT_ONLY
        self._logged_main_locale_texts = False

    @property
    def path_resolution_enabled(self) -> bool:
        return self.mode is TranslationMode.INDIRECT_ENABLED

    def escalate_to_indirect_mode(self) -> None:
        """Enable routing through intermediate languages. There is no way back."""
        if self.mode is not TranslationMode.INDIRECT_ENABLED:
            logger.warning("Enabling indirect translation through supported translation ways.")
            self.mode = TranslationMode.INDIRECT_ENABLED

    async def translate(
            self,
            texts: Sequence[str],
            source_language: str,
            target_language: str
    ) -> List[str]:
        """
        Translate ``texts`` from ``source_language`` to ``target_language``.

        Connection failures restart the whole call from scratch, up to
        ``max_transport_retries`` attempts. A rejected language pair enables
        indirect mode and restarts the call.

        Returns:
            The translations, same length and order as ``texts``.

        Raises:
            TranslationRetriesExhaustedError: The service stayed unreachable.
            UnsupportedLanguagePairError: A pair was rejected although indirect mode was on.
            NoTranslationPathError: No chain of supported ways reaches the target.
        """
        texts = list(texts)
        label = f"{source_language}=>{target_language}"
        transport_failures = 0
        while True:
            try:
                return await self._translate(texts, source_language, target_language)
            except UnsupportedLanguagePairError as pair_exc:
                if self.path_resolution_enabled:
                    raise
                logger.warning("Service rejected %s->%s (language: %s): %s",
                               pair_exc.source_language, pair_exc.target_language,
                               pair_exc.language or "unknown", pair_exc)
                self.escalate_to_indirect_mode()
            except httpx.TransportError as transport_exc:
                transport_failures += 1
                logger.error("Could not reach the translation service (%s): %s",
                             transport_exc.__class__.__name__, transport_exc)
                if not await _handle_retry(transport_failures, self.max_transport_retries,
                                           self.retry_base_delay, label):
                    raise TranslationRetriesExhaustedError(
                        f"Translation service unreachable after {self.max_transport_retries} attempts ({label})."
                    ) from transport_exc

    async def _translate(
            self,
            texts: List[str],
            source_language: str,
            target_language: str,
            resolving: FrozenSet[Tuple[str, str]] = frozenset()
    ) -> List[str]:
        if source_language == target_language:
            return list(texts)

        if self.path_resolution_enabled and not self.graph.is_directly_supported(source_language, target_language):
            # A pair that comes up again while it is being resolved can never be reached.
            if (source_language, target_language) in resolving:
                raise NoTranslationPathError(source_language, target_language)
            resolving = resolving | {(source_language, target_language)}
            hop_language = self.graph.next_hop(source_language, target_language)
            if hop_language is None:
                raise NoTranslationPathError(source_language, target_language)
            logger.info("No direct way %s->%s, translating through '%s'.",
                        source_language, target_language, hop_language)
            texts = await self._translate(texts, source_language, hop_language, resolving)
            source_language = hop_language

        return await self._translate_chunks(texts, source_language, target_language)

    async def _translate_chunks(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        self._log_batch(texts, source_language, target_language)
        translated: List[str] = []
        with tqdm(total=len(texts), desc=f"Translating [{source_language}=>{target_language}]",
                  unit="text", disable=not self.show_progress) as progress:
            for start in range(0, len(texts), self.chunk_size):
                chunk = texts[start:start + self.chunk_size]
                translated.extend(await self._translate_chunk(chunk, source_language, target_language))
                progress.update(len(chunk))
        return translated

    async def _translate_chunk(self, chunk: List[str], source_language: str, target_language: str) -> List[str]:
        internal_errors = 0
        while True:
            logger.debug("Sending [%s=>%s]: %s", source_language, target_language, chunk)
            try:
                translated = await self.client.translate_batch(chunk, source_language, target_language)
            except ServiceInternalError as internal_exc:
                internal_errors += 1
                if self.max_internal_error_retries is not None and internal_errors > self.max_internal_error_retries:
                    logger.error("Giving up on chunk after %d internal errors.", internal_errors)
                    raise
                logger.warning("Translation service internal error, retrying chunk: %s", internal_exc)
                continue
            logger.debug("Translated: %s", translated)
            return translated

    def _log_batch(self, texts: List[str], source_language: str, target_language: str) -> None:
        if source_language == self.main_locale and not self._logged_main_locale_texts:
            logger.info("Translating.. [%s=>%s] %s", source_language, target_language, texts)
            self._logged_main_locale_texts = True
        else:
            logger.info("Translating.. [%s=>%s] %d text(s)", source_language, target_language, len(texts))
