"""Translation provider capability interface and per-instance settings."""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Hashable

from suggester.placeholders import DEFAULT_PATTERN, resolve_pattern

DEFAULT_TARGET = "en"


@dataclass
class ProviderSettings:
    """Language pair and placeholder pattern of one provider instance.

    A source of None means "detect automatically".
    """

    source: str | None = None
    target: str = DEFAULT_TARGET
    pattern: re.Pattern | None = field(default_factory=lambda: re.compile(DEFAULT_PATTERN))

    def set_source(self, code: str | None) -> None:
        self.source = code or None

    def set_target(self, code: str | None, default: str = DEFAULT_TARGET) -> None:
        self.target = code or default

    def set_pattern(self, mode: bool | str | re.Pattern) -> None:
        self.pattern = resolve_pattern(mode)


class TranslationProvider(ABC):
    """Capability contract shared by all translation providers.

    Policies common to every implementation:
    - translate(None) is treated as translate("").
    - Blank text is returned as-is without calling the engine.
    - Engine failures raise TranslationError from translate().
    - translate_many() never raises for a failing item; the item maps to None.
    """

    @abstractmethod
    def id(self) -> str:
        """Stable short identifier, e.g. "google"."""
        ...

    @abstractmethod
    def engine(self) -> str:
        """Human-readable engine name."""
        ...

    @abstractmethod
    def icon(self) -> str:
        """Presentation identifier for the engine."""
        ...

    @abstractmethod
    def preserve_parameters(self, mode: bool | str | re.Pattern = True) -> "TranslationProvider":
        """Configure placeholder handling.

        Args:
            mode: True selects the default ":name" pattern, False disables
                preservation, a string is used as a custom regex.
        """
        ...

    @abstractmethod
    def set_source(self, code: str | None) -> "TranslationProvider":
        """Set the source language. None means auto-detect."""
        ...

    @abstractmethod
    def set_target(self, code: str | None) -> "TranslationProvider":
        """Set the target language. None falls back to the default target."""
        ...

    @abstractmethod
    async def translate(self, text: str | None = None) -> str:
        """Translate one text, restoring placeholders afterwards."""
        ...

    @abstractmethod
    async def translate_many(self, texts: Mapping[Hashable, str | None]) -> dict[Hashable, str | None]:
        """Translate every value of texts. Failed items map to None."""
        ...

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None
