"""Google Translate provider: the public web translation endpoint via httpx."""

import logging
import re
from collections.abc import Mapping
from typing import Any, Hashable

import httpx

from suggester import batch, placeholders
from suggester.exceptions import TranslationError
from suggester.providers.base import ProviderSettings, TranslationProvider
from suggester.reporting import ErrorReporter, LoggingReporter

logger = logging.getLogger(__name__)


class GoogleTranslateProvider(TranslationProvider):
    """Translates text through Google's web translation endpoint.

    Args:
        client: Pre-built async HTTP client (tests inject a mock transport).
        endpoint: Web translate URL. Defaults to GOOGLE_TRANSLATE_ENDPOINT.
        timeout: Request timeout in seconds. Defaults to REQUEST_TIMEOUT.
        reporter: Sink for per-item batch failures.
        max_concurrency: Parallel requests in translate_many().
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        endpoint: str = "",
        timeout: float | None = None,
        reporter: ErrorReporter | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        if not endpoint or timeout is None or max_concurrency is None:
            from suggester import config

            endpoint = endpoint or config.GOOGLE_TRANSLATE_ENDPOINT
            timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
            max_concurrency = config.BATCH_CONCURRENCY if max_concurrency is None else max_concurrency

        self.endpoint: str = endpoint
        self.settings = ProviderSettings()
        self.reporter: ErrorReporter = reporter or LoggingReporter()
        self.max_concurrency: int = max_concurrency
        self.last_detected_source: str | None = None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    def id(self) -> str:
        return "google"

    def engine(self) -> str:
        return "Google Translate"

    def icon(self) -> str:
        return "google"

    def preserve_parameters(self, mode: bool | str | re.Pattern = True) -> "GoogleTranslateProvider":
        self.settings.set_pattern(mode)
        return self

    def set_source(self, code: str | None) -> "GoogleTranslateProvider":
        self.settings.set_source(code)
        return self

    def set_target(self, code: str | None) -> "GoogleTranslateProvider":
        self.settings.set_target(code)
        return self

    async def translate(self, text: str | None = None) -> str:
        text = text or ""
        if not text.strip():
            return text

        masked, replacements = placeholders.extract(text, self.settings.pattern)
        data = await self._request(masked)
        result = self._parse_translation(data)

        if self.settings.source:
            self.last_detected_source = self.settings.source
        else:
            detected = data[2] if len(data) > 2 and isinstance(data[2], str) else None
            self.last_detected_source = detected.split("-")[0].lower() if detected else None

        return placeholders.inject(result, replacements) if replacements else result

    async def translate_many(self, texts: Mapping[Hashable, str | None]) -> dict[Hashable, str | None]:
        outcomes = await batch.translate_each(
            self.translate, texts, self.reporter, self.max_concurrency
        )
        return batch.unwrap(outcomes)

    async def detect(self, text: str) -> str | None:
        """Translate text with an automatic source and return the detected language.

        Costs one translation request, same as translate().
        """
        await self.set_source(None).translate(text)
        return self.last_detected_source

    async def _request(self, text: str) -> list[Any]:
        params = {
            "client": "gtx",
            "sl": self.settings.source or "auto",
            "tl": self.settings.target,
            "dt": "t",
            "q": text,
        }
        try:
            response = await self._client.get(self.endpoint, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.debug(
                "Google Translate error: %s %s",
                exc.response.status_code,
                exc.response.reason_phrase,
            )
            raise TranslationError(
                f"Google Translate error ({exc.response.status_code})",
                "HTTP_ERROR",
                {"status_code": exc.response.status_code},
            ) from exc
        except httpx.TimeoutException as exc:
            raise TranslationError("Google Translate request timeout", "TIMEOUT") from exc
        except httpx.HTTPError as exc:
            raise TranslationError(f"Google Translate request failed: {exc}", "REQUEST_FAILED") from exc
        except ValueError as exc:
            raise TranslationError("Google Translate returned invalid JSON", "BAD_RESPONSE") from exc

        if not isinstance(data, list) or not data:
            raise TranslationError("Unexpected Google Translate response format", "BAD_RESPONSE")
        return data

    @staticmethod
    def _parse_translation(data: list[Any]) -> str:
        segments = data[0]
        if not isinstance(segments, list):
            raise TranslationError("Unexpected Google Translate response format", "BAD_RESPONSE")
        return "".join(
            segment[0]
            for segment in segments
            if isinstance(segment, list) and segment and isinstance(segment[0], str)
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
