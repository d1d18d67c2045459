"""OpenAI provider: chat-completion translation with source language detection."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Hashable

import httpx

from suggester import batch, placeholders
from suggester.cache import DetectionCache
from suggester.exceptions import TranslationError
from suggester.language_detection import LanguageDetector
from suggester.providers.base import DEFAULT_TARGET, ProviderSettings, TranslationProvider
from suggester.reporting import ErrorReporter, LoggingReporter

logger = logging.getLogger(__name__)

MISSING_API_KEY_MESSAGE = "Please configure OpenAI API key"

TRANSLATION_TEMPERATURE = 0.2

SYSTEM_PROMPT = (
    "You are a professional translator. "
    "You always preserve parameters like :name or #{0} during translation.\n"
    "Avoid hallucinations. Never wrap the translation in quotes or formatting."
)

DETECTION_PROMPT = (
    'Return only the ISO 639-1 language code (e.g. "pl", "en", "de") of the given text. '
    "No explanation."
)


@dataclass(frozen=True)
class OpenAiCredentials:
    """API access settings for the OpenAI chat completions endpoint."""

    api_key: str = ""
    organization: str | None = None
    project: str | None = None
    model: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"

    @classmethod
    def from_config(cls) -> "OpenAiCredentials":
        from suggester import config

        return cls(
            api_key=config.OPENAI_API_KEY,
            organization=config.OPENAI_ORGANIZATION or None,
            project=config.OPENAI_PROJECT or None,
            model=config.OPENAI_MODEL,
            base_url=config.OPENAI_BASE_URL,
        )


class OpenAiChatClient:
    """Minimal chat completions client.

    Args:
        credentials: API key, optional organization/project, default model.
        timeout: Request timeout in seconds.
        client: Pre-built async HTTP client (tests inject a mock transport).
    """

    def __init__(
        self,
        credentials: OpenAiCredentials,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.credentials = credentials
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.credentials.api_key}",
            "Content-Type": "application/json",
        }
        if self.credentials.organization:
            headers["OpenAI-Organization"] = self.credentials.organization
        if self.credentials.project:
            headers["OpenAI-Project"] = self.credentials.project
        return headers

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        model: str | None = None,
    ) -> str:
        """Send a chat completion request and return the first message content."""
        body = {
            "model": model or self.credentials.model,
            "temperature": temperature,
            "messages": messages,
        }
        url = f"{self.credentials.base_url.rstrip('/')}/chat/completions"

        try:
            response = await self._client.post(url, headers=self._headers(), json=body)
            response.raise_for_status()
            result: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            logger.debug(
                "OpenAI API error: %s %s",
                exc.response.status_code,
                exc.response.reason_phrase,
            )
            raise TranslationError(
                f"OpenAI API error ({exc.response.status_code}): {_error_text(exc.response)}",
                "HTTP_ERROR",
                {"status_code": exc.response.status_code},
            ) from exc
        except httpx.TimeoutException as exc:
            raise TranslationError("OpenAI API request timeout", "TIMEOUT") from exc
        except httpx.HTTPError as exc:
            raise TranslationError(f"OpenAI API call failed: {exc}", "REQUEST_FAILED") from exc
        except ValueError as exc:
            raise TranslationError("OpenAI API returned invalid JSON", "BAD_RESPONSE") from exc

        choices = result.get("choices") if isinstance(result, dict) else None
        if not choices:
            raise TranslationError("No choices in OpenAI response", "BAD_RESPONSE")
        return choices[0].get("message", {}).get("content") or ""

    async def close(self) -> None:
        await self._client.aclose()


def _error_text(response: httpx.Response) -> str:
    try:
        error = response.json().get("error")
    except ValueError:
        return response.text[:500]
    if isinstance(error, dict):
        return error.get("message", str(error))
    return str(error) if error else "Unknown error"


class OpenAiTranslateProvider(TranslationProvider):
    """Translates text with an OpenAI chat model.

    When no source language is set, the source is detected (LLM first,
    langdetect second) and exposed as last_detected_source.

    A missing API key is not an exception: translate() returns
    MISSING_API_KEY_MESSAGE instead.

    Args:
        target: Target language code. None falls back to "en".
        source: Source language code. None means auto-detect.
        preserve: Placeholder mode, see preserve_parameters().
        credentials: API settings. Defaults to OpenAiCredentials.from_config().
        chat: Chat client. Built from credentials when omitted.
        cache: Detection cache. Defaults to the shared sqlite cache, which
            close() then closes.
        reporter: Sink for caught batch and detection errors.
        max_concurrency: Parallel requests in translate_many().
    """

    def __init__(
        self,
        target: str | None = DEFAULT_TARGET,
        source: str | None = None,
        preserve: bool | str | re.Pattern = True,
        credentials: OpenAiCredentials | None = None,
        chat: OpenAiChatClient | None = None,
        cache: DetectionCache | None = None,
        reporter: ErrorReporter | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        from suggester import config

        self.credentials = credentials or OpenAiCredentials.from_config()
        self.chat = chat or OpenAiChatClient(self.credentials, timeout=config.REQUEST_TIMEOUT)
        self.reporter: ErrorReporter = reporter or LoggingReporter()
        self.max_concurrency: int = (
            config.BATCH_CONCURRENCY if max_concurrency is None else max_concurrency
        )
        # A cache built here is closed by close(); an injected one is left open.
        self._owns_cache = cache is None
        if cache is None:
            from suggester.cache import SqliteDetectionCache

            cache = SqliteDetectionCache(config.DETECTION_CACHE_PATH)
        self.detector = LanguageDetector(
            classify=self._classify_language,
            cache=cache,
            reporter=self.reporter,
        )
        self.last_detected_source: str | None = None

        self.settings = ProviderSettings()
        self.set_target(target)
        self.set_source(source)
        self.preserve_parameters(preserve)

    def id(self) -> str:
        return "openai"

    def engine(self) -> str:
        return "OpenAI Translate"

    def icon(self) -> str:
        return "openai"

    def preserve_parameters(self, mode: bool | str | re.Pattern = True) -> "OpenAiTranslateProvider":
        self.settings.set_pattern(mode)
        return self

    def set_source(self, code: str | None) -> "OpenAiTranslateProvider":
        self.settings.set_source(code)
        return self

    def set_target(self, code: str | None) -> "OpenAiTranslateProvider":
        self.settings.set_target(code)
        return self

    async def translate(self, text: str | None = None) -> str:
        if not self.credentials.api_key:
            return MISSING_API_KEY_MESSAGE

        text = text or ""
        if not text.strip():
            return text

        masked, replacements = placeholders.extract(text, self.settings.pattern)
        content = await self.chat.complete(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self._build_prompt(masked)},
            ],
            temperature=TRANSLATION_TEMPERATURE,
        )
        result = content.strip()

        self.last_detected_source = self.settings.source or await self.detector.detect(text)

        return placeholders.inject(result, replacements) if replacements else result

    async def translate_many(self, texts: Mapping[Hashable, str | None]) -> dict[Hashable, str | None]:
        outcomes = await batch.translate_each(
            self.translate, texts, self.reporter, self.max_concurrency
        )
        return batch.unwrap(outcomes)

    async def detect(self, text: str) -> str | None:
        """Translate text with an automatic source and return the detected language.

        This runs a full translation: same cost and side effects as translate().
        """
        await self.set_source(None).translate(text)
        return self.last_detected_source

    def get_last_detected_source(self) -> str | None:
        return self.last_detected_source

    def _build_prompt(self, text: str) -> str:
        source = self.settings.source or "auto"
        return (
            f'Translate the following text from "{source}" to "{self.settings.target}".\n'
            "Return only the translated text without quotes or markdown formatting.\n"
            "\n"
            "Text:\n"
            f"{text}"
        )

    async def _classify_language(self, text: str) -> str:
        return await self.chat.complete(
            [
                {"role": "system", "content": DETECTION_PROMPT},
                {"role": "user", "content": text},
            ],
            temperature=0,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client and the detection cache it created."""
        await self.chat.close()
        if self._owns_cache:
            self.detector.cache.close()
