"""Tests for the OpenAI chat provider and its chat client."""

import json
import logging
import sqlite3

import httpx
import pytest

from suggester import config
from suggester.cache import MemoryDetectionCache, SqliteDetectionCache
from suggester.exceptions import TranslationError
from suggester.providers.openai_translate import (
    DETECTION_PROMPT,
    MISSING_API_KEY_MESSAGE,
    SYSTEM_PROMPT,
    OpenAiChatClient,
    OpenAiCredentials,
    OpenAiTranslateProvider,
)
from suggester.reporting import CollectingReporter

CREDENTIALS = OpenAiCredentials(api_key="sk-test", organization="org-1", project="proj-1")


class FakeChat:
    """Chat client stand-in. Translations echo the prompt text as "[xx] text"."""

    def __init__(self, detect_answer="fr", reply=None, fail_on=None):
        self.detect_answer = detect_answer
        self.reply = reply
        self.fail_on = fail_on or set()
        self.prompts: list[str] = []
        self.temperatures: list[float] = []
        self.detection_calls = 0
        self.closed = False

    async def complete(self, messages, temperature, model=None):
        if messages[0]["content"] == DETECTION_PROMPT:
            self.detection_calls += 1
            if isinstance(self.detect_answer, Exception):
                raise self.detect_answer
            return self.detect_answer

        prompt = messages[1]["content"]
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        text = prompt.split("Text:\n", 1)[1]
        if text in self.fail_on:
            raise TranslationError("OpenAI API request timeout", "TIMEOUT")
        if self.reply is not None:
            return self.reply
        return f"  [xx] {text}\n"

    async def close(self):
        self.closed = True


def _provider(chat=None, credentials=CREDENTIALS, reporter=None, **kwargs):
    return OpenAiTranslateProvider(
        credentials=credentials,
        chat=chat or FakeChat(),
        cache=MemoryDetectionCache(),
        reporter=reporter or CollectingReporter(),
        max_concurrency=1,
        **kwargs,
    )


class TestConfiguration:
    """Test identity, defaults and fluent setters."""

    def test_identity(self):
        provider = _provider()
        assert provider.id() == "openai"
        assert provider.engine() == "OpenAI Translate"
        assert provider.icon() == "openai"

    def test_constructor_defaults(self):
        provider = _provider()
        assert provider.settings.target == "en"
        assert provider.settings.source is None
        assert provider.settings.pattern is not None

    def test_null_target_falls_back_to_english(self):
        provider = _provider(target="de").set_target(None)
        assert provider.settings.target == "en"

    def test_setters_chain(self):
        provider = _provider()
        assert provider.set_source("pl").set_target("de").preserve_parameters(False) is provider


class TestTranslate:
    """Test single-text translation."""

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_diagnostic(self):
        chat = FakeChat()
        provider = _provider(chat=chat, credentials=OpenAiCredentials(api_key=""))

        assert await provider.translate("Hello") == MISSING_API_KEY_MESSAGE
        assert chat.prompts == []

    @pytest.mark.asyncio
    async def test_prompt_and_placeholders(self):
        chat = FakeChat()
        provider = _provider(chat=chat, source="en", target="de")

        result = await provider.translate("Hello :name, you have :count messages")

        assert result == "[xx] Hello :name, you have :count messages"
        assert chat.prompts[0] == (
            'Translate the following text from "en" to "de".\n'
            "Return only the translated text without quotes or markdown formatting.\n"
            "\n"
            "Text:\n"
            "Hello #{0}, you have #{1} messages"
        )
        assert chat.temperatures == [0.2]

    @pytest.mark.asyncio
    async def test_auto_source_in_prompt(self):
        chat = FakeChat()
        await _provider(chat=chat).translate("Bonjour")
        assert 'from "auto" to "en"' in chat.prompts[0]

    @pytest.mark.asyncio
    async def test_preservation_disabled_passes_parameters_through(self):
        chat = FakeChat()
        provider = _provider(chat=chat, source="en").preserve_parameters(False)

        assert await provider.translate("Hello :name") == "[xx] Hello :name"
        assert chat.prompts[0].endswith("Text:\nHello :name")

    @pytest.mark.asyncio
    async def test_hallucinated_marker_removed(self):
        chat = FakeChat(reply="Hallo #{0} #{3}")
        provider = _provider(chat=chat, source="en")
        assert await provider.translate("Hello :name") == "Hallo :name "

    @pytest.mark.asyncio
    async def test_engine_error_propagates(self):
        provider = _provider(chat=FakeChat(fail_on={"Hello"}), source="en")
        with pytest.raises(TranslationError):
            await provider.translate("Hello")

    @pytest.mark.asyncio
    async def test_blank_text(self):
        chat = FakeChat()
        provider = _provider(chat=chat)
        assert await provider.translate(None) == ""
        assert chat.prompts == []


class LockedCache(MemoryDetectionCache):
    def get(self, key):
        raise sqlite3.OperationalError("database is locked")

    def set(self, key, value, ttl_seconds):
        raise sqlite3.OperationalError("database is locked")


class TrackingCache(MemoryDetectionCache):
    def __init__(self):
        super().__init__()
        self.closed = False

    def close(self):
        self.closed = True


class TestSourceDetection:
    """Test detection of the source language during translation."""

    @pytest.mark.asyncio
    async def test_explicit_source_skips_detection(self):
        chat = FakeChat()
        provider = _provider(chat=chat, source="pl")

        await provider.translate("Dzień dobry")
        assert provider.get_last_detected_source() == "pl"
        assert chat.detection_calls == 0

    @pytest.mark.asyncio
    async def test_detection_cached_across_calls(self):
        chat = FakeChat(detect_answer="fr")
        provider = _provider(chat=chat)

        await provider.translate("Bonjour")
        await provider.translate("Bonjour")
        assert provider.last_detected_source == "fr"
        assert chat.detection_calls == 1

    @pytest.mark.asyncio
    async def test_detect_resets_source(self):
        chat = FakeChat(detect_answer="fr")
        provider = _provider(chat=chat, source="de")

        assert await provider.detect("Bonjour") == "fr"
        assert provider.settings.source is None
        assert len(chat.prompts) == 1

    @pytest.mark.asyncio
    async def test_invalid_code_uses_fallback(self):
        calls = []

        def fallback(text):
            calls.append(text)
            return "de"

        provider = _provider(chat=FakeChat(detect_answer="xyz123"))
        provider.detector.fallback = fallback

        assert await provider.detect("Guten Morgen") == "de"
        assert calls == ["Guten Morgen"]

    @pytest.mark.asyncio
    async def test_detection_error_reported_translation_kept(self):
        reporter = CollectingReporter()
        provider = _provider(
            chat=FakeChat(detect_answer=TranslationError("down", "TIMEOUT")), reporter=reporter
        )
        provider.detector.fallback = lambda text: "it"

        assert await provider.translate("Buongiorno") == "[xx] Buongiorno"
        assert provider.last_detected_source == "it"
        assert len(reporter.errors) == 1


class TestTranslateMany:
    """Test batch translation error isolation."""

    @pytest.mark.asyncio
    async def test_failed_item_becomes_none(self):
        reporter = CollectingReporter()
        provider = _provider(chat=FakeChat(fail_on={"world"}), source="en", reporter=reporter)

        result = await provider.translate_many({"a": "hello", "b": "world"})

        assert result == {"a": "[xx] hello", "b": None}
        assert len(reporter.errors) == 1

    @pytest.mark.asyncio
    async def test_close_closes_chat(self):
        chat = FakeChat()
        await _provider(chat=chat).close()
        assert chat.closed


class TestOpenAiChatClient:
    """Test the HTTP chat completions client."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "Hallo"}}]})

        client = OpenAiChatClient(
            CREDENTIALS, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        messages = [{"role": "system", "content": SYSTEM_PROMPT}, {"role": "user", "content": "Hi"}]

        assert await client.complete(messages, temperature=0.2) == "Hallo"

        request = seen[0]
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["OpenAI-Organization"] == "org-1"
        assert request.headers["OpenAI-Project"] == "proj-1"
        body = json.loads(request.content)
        assert body == {"model": "gpt-4o", "temperature": 0.2, "messages": messages}

    @pytest.mark.asyncio
    async def test_optional_headers_omitted(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": None}}]})

        client = OpenAiChatClient(
            OpenAiCredentials(api_key="sk-test"),
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        assert await client.complete([], temperature=0, model="gpt-4o-mini") == ""
        assert "OpenAI-Organization" not in seen[0].headers
        assert json.loads(seen[0].content)["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_http_error_message(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        client = OpenAiChatClient(
            CREDENTIALS, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        with pytest.raises(TranslationError, match="Invalid API key") as exc_info:
            await client.complete([], temperature=0)
        assert exc_info.value.code == "HTTP_ERROR"

    @pytest.mark.asyncio
    async def test_missing_choices(self):
        def handler(request):
            return httpx.Response(200, json={"choices": []})

        client = OpenAiChatClient(
            CREDENTIALS, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        with pytest.raises(TranslationError) as exc_info:
            await client.complete([], temperature=0)
        assert exc_info.value.code == "BAD_RESPONSE"


class TestDetectionCacheHandling:
    """Test cache failures and cache ownership."""

    @pytest.mark.asyncio
    async def test_locked_cache_keeps_translation(self):
        reporter = CollectingReporter()
        provider = OpenAiTranslateProvider(
            credentials=CREDENTIALS, chat=FakeChat(), cache=LockedCache(), reporter=reporter
        )

        assert await provider.translate("Bonjour") == "[xx] Bonjour"
        assert provider.last_detected_source == "fr"
        assert len(reporter.errors) == 2

    @pytest.mark.asyncio
    async def test_close_releases_created_cache(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "DETECTION_CACHE_PATH", str(tmp_path / "detect.sqlite3"))
        provider = OpenAiTranslateProvider(credentials=CREDENTIALS, chat=FakeChat())
        cache = provider.detector.cache
        assert isinstance(cache, SqliteDetectionCache)

        await provider.close()
        with pytest.raises(sqlite3.ProgrammingError):
            cache._conn.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_close_leaves_injected_cache_open(self):
        cache = TrackingCache()
        provider = OpenAiTranslateProvider(credentials=CREDENTIALS, chat=FakeChat(), cache=cache)

        await provider.close()
        assert cache.closed is False


class TestMarkerShapedSource:
    @pytest.mark.asyncio
    async def test_literal_marker_preserved(self):
        chat = FakeChat()
        provider = _provider(chat=chat, source="en")

        assert await provider.translate("Use #{0} in templates") == "[xx] Use #{0} in templates"


class TestErrorLogging:
    @pytest.mark.asyncio
    async def test_batch_failure_logged_once(self, caplog):
        def handler(request):
            return httpx.Response(500, json={"error": {"message": "boom"}})

        chat = OpenAiChatClient(
            CREDENTIALS, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        provider = OpenAiTranslateProvider(
            credentials=CREDENTIALS, chat=chat, cache=MemoryDetectionCache(), source="en"
        )

        with caplog.at_level(logging.DEBUG):
            assert await provider.translate_many({"a": "hello"}) == {"a": None}

        errors = [record for record in caplog.records if record.levelno >= logging.ERROR]
        assert len(errors) == 1
