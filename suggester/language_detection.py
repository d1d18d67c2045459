"""Best-effort source language detection.

Fallback chain: ask the LLM for a two-letter code, then run langdetect
locally, then give up with None. Results (including None) are cached by
a hash of the text for 30 days.
"""

import asyncio
import hashlib
import logging
import re
from collections.abc import Awaitable, Callable

from langdetect import DetectorFactory, detect_langs

from suggester.cache import MISSING, DetectionCache
from suggester.outcome import Failure, Outcome, Success
from suggester.reporting import ErrorReporter

logger = logging.getLogger(__name__)

# Deterministic langdetect results
DetectorFactory.seed = 0

CACHE_TTL_SECONDS = 30 * 24 * 60 * 60
CACHE_KEY_PREFIX = "lang_detect:"

LANGUAGE_CODE_RE = re.compile(r"^[a-z]{2}$")

Classifier = Callable[[str], Awaitable[str]]
Fallback = Callable[[str], str | None]


def detect_with_langdetect(text: str) -> str | None:
    """Return the most probable language of text according to langdetect.

    Region subtags are dropped ("zh-cn" -> "zh").

    Raises:
        langdetect.LangDetectException: If the text has no usable features.
    """
    candidates = detect_langs(text)
    if not candidates:
        return None
    return candidates[0].lang.split("-")[0].lower()


def cache_key(text: str) -> str:
    return CACHE_KEY_PREFIX + hashlib.md5(text.encode("utf-8")).hexdigest()


class LanguageDetector:
    """Cached language detection with an LLM primary and a local fallback.

    Args:
        classify: Coroutine returning the raw LLM answer for a text.
        cache: Store for detection results.
        reporter: Sink for errors caught along the chain.
        fallback: Local detector used when the LLM answer is unusable.
        ttl_seconds: Lifetime of cached results.
    """

    def __init__(
        self,
        classify: Classifier,
        cache: DetectionCache,
        reporter: ErrorReporter,
        fallback: Fallback = detect_with_langdetect,
        ttl_seconds: float = CACHE_TTL_SECONDS,
    ) -> None:
        self.classify = classify
        self.cache = cache
        self.reporter = reporter
        self.fallback = fallback
        self.ttl_seconds = ttl_seconds

    async def detect(self, text: str) -> str | None:
        """Detect the language of text. Never raises.

        Cache calls run in a worker thread since the sqlite store may block
        on a lock held by another process. A failing cache read counts as a
        miss; a failing write still returns the detected language.
        """
        key = cache_key(text)
        try:
            cached = await asyncio.to_thread(self.cache.get, key)
        except Exception as exc:
            self.reporter.report(exc, context="language detection cache read failed")
            cached = MISSING
        if cached is not MISSING:
            logger.debug("Language detection cache hit: %s -> %s", key, cached)
            return cached

        language = await self._resolve(text)
        try:
            await asyncio.to_thread(self.cache.set, key, language, self.ttl_seconds)
        except Exception as exc:
            self.reporter.report(exc, context="language detection cache write failed")
        return language

    async def _resolve(self, text: str) -> str | None:
        outcome = await self._ask_engine(text)
        if isinstance(outcome, Success):
            code = outcome.value.strip().lower()
            if LANGUAGE_CODE_RE.match(code):
                return code
            logger.debug("Engine returned an invalid language code %r, falling back", outcome.value)

        outcome = self._run_fallback(text)
        if isinstance(outcome, Success):
            return outcome.value or None
        return None

    async def _ask_engine(self, text: str) -> Outcome:
        try:
            return Success(await self.classify(text))
        except Exception as exc:
            self.reporter.report(exc, context="language detection engine call failed")
            return Failure(exc)

    def _run_fallback(self, text: str) -> Outcome:
        try:
            return Success(self.fallback(text))
        except Exception as exc:
            self.reporter.report(exc, context="fallback language detection failed")
            return Failure(exc)
