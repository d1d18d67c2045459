"""Echo provider: returns input text unchanged. For testing and dry runs."""

import re
from collections.abc import Mapping
from typing import Hashable

from suggester import batch, placeholders
from suggester.providers.base import ProviderSettings, TranslationProvider
from suggester.reporting import ErrorReporter, LoggingReporter


class EchoProvider(TranslationProvider):
    """Returns the input text unchanged.

    Placeholders still go through extraction and reinjection, so the
    output is identical to the input for any pattern.
    """

    def __init__(self, reporter: ErrorReporter | None = None, max_concurrency: int = 1) -> None:
        self.settings = ProviderSettings()
        self.reporter = reporter or LoggingReporter()
        self.max_concurrency = max_concurrency

    def id(self) -> str:
        return "echo"

    def engine(self) -> str:
        return "Echo"

    def icon(self) -> str:
        return "echo"

    def preserve_parameters(self, mode: bool | str | re.Pattern = True) -> "EchoProvider":
        self.settings.set_pattern(mode)
        return self

    def set_source(self, code: str | None) -> "EchoProvider":
        self.settings.set_source(code)
        return self

    def set_target(self, code: str | None) -> "EchoProvider":
        self.settings.set_target(code)
        return self

    async def translate(self, text: str | None = None) -> str:
        text = text or ""
        masked, replacements = placeholders.extract(text, self.settings.pattern)
        return placeholders.inject(masked, replacements) if replacements else masked

    async def translate_many(self, texts: Mapping[Hashable, str | None]) -> dict[Hashable, str | None]:
        outcomes = await batch.translate_each(
            self.translate, texts, self.reporter, self.max_concurrency
        )
        return batch.unwrap(outcomes)
