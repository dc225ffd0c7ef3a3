import logging
import re
from typing import Any, List, Optional, Sequence

import httpx
import jsonschema
from aiolimiter import AsyncLimiter

logger = logging.getLogger("locale_sync")

# Expected shape of a successful translation response.
TRANSLATION_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "translated": {
            "type": "array",
            "items": {"type": "string"}
        }
    },
    "required": ["translated"]
}

UNSUPPORTED_PAIR_PATTERN = re.compile(r'tokenizer|not supported|unsupported', re.IGNORECASE)
INTERNAL_ERROR_PATTERN = re.compile(r'internal', re.IGNORECASE)
QUOTED_LANGUAGE_PATTERN = re.compile(r'''['"]([A-Za-z]{2,3}(?:_[A-Za-z]{2,4})?)['"]''')


class TranslationServiceError(Exception):
    """Base class for translation failures that cannot be treated as a valid result."""


class ServiceInternalError(TranslationServiceError):
    """The service reported a generic internal error; the same request may be retried."""


class UnsupportedLanguagePairError(TranslationServiceError):
    """The service cannot translate the requested pair directly."""

    def __init__(self, source_language: str, target_language: str, message: str,
                 language: Optional[str] = None):
        super().__init__(f"Translation {source_language}->{target_language} is not supported: {message}")
        self.source_language = source_language
        self.target_language = target_language
        self.language = language


class NoTranslationPathError(TranslationServiceError):
    """No chain of supported ways connects the two languages."""

    def __init__(self, source_language: str, target_language: str):
        super().__init__(f"No translation path from '{source_language}' to '{target_language}'.")
        self.source_language = source_language
        self.target_language = target_language


class TranslationRetriesExhaustedError(TranslationServiceError):
    """The service stayed unreachable for every allowed attempt."""


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict):
        for field in ('error', 'detail', 'message'):
            if body.get(field):
                return str(body[field])
    return response.text or response.reason_phrase


class TranslationServiceClient:
    """
    Client for the single-pair translation endpoint.

    One call sends one batch of texts and either returns the translated texts
    in the same order or raises one of the ``TranslationServiceError``
    subclasses. Connection problems surface as ``httpx.TransportError``.
    """

    def __init__(
            self,
            service_url: str,
            timeout: float = 60.0,
            max_requests_per_minute: int = 600,
            http_client: Optional[httpx.AsyncClient] = None
    ):
        self.service_url = service_url
        self.rate_limiter = AsyncLimiter(max_rate=max_requests_per_minute, time_period=60)
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> 'TranslationServiceClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def translate_batch(
            self,
            texts: Sequence[str],
            source_language: str,
            target_language: str
    ) -> List[str]:
        """
        Translate one batch of texts from ``source_language`` to ``target_language``.

        Args:
            texts: The texts to translate; the service accepts a handful per request.
            source_language: The language code of ``texts``.
            target_language: The language code to translate into.

        Returns:
            The translated texts, one per input, in input order.
        """
        params = [('source_lang', source_language), ('target_lang', target_language)]
        params.extend(('text', text) for text in texts)

        async with self.rate_limiter:
            response = await self._http_client.get(self.service_url, params=params)

        return self._parse_response(response, texts, source_language, target_language)

    @staticmethod
    def _parse_response(
            response: httpx.Response,
            texts: Sequence[str],
            source_language: str,
            target_language: str
    ) -> List[str]:
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code < 400 and isinstance(body, dict) and 'translated' in body:
            try:
                jsonschema.validate(instance=body, schema=TRANSLATION_RESPONSE_SCHEMA)
            except jsonschema.ValidationError as validation_exc:
                raise TranslationServiceError(
                    f"Malformed translation response: {validation_exc.message}"
                ) from validation_exc

            translated = body['translated']
            if len(translated) != len(texts):
                raise TranslationServiceError(
                    f"Service returned {len(translated)} translations for {len(texts)} texts "
                    f"({source_language}->{target_language})."
                )
            return translated

        message = _error_message(response, body)
        if UNSUPPORTED_PAIR_PATTERN.search(message):
            language_match = QUOTED_LANGUAGE_PATTERN.search(message)
            raise UnsupportedLanguagePairError(
                source_language,
                target_language,
                message,
                language=language_match.group(1) if language_match else None
            )
        if response.status_code >= 500 or INTERNAL_ERROR_PATTERN.search(message):
            raise ServiceInternalError(f"HTTP {response.status_code}: {message[:200]}")
        raise TranslationServiceError(f"Unexpected response HTTP {response.status_code}: {message[:200]}")
