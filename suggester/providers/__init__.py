from suggester.providers.base import TranslationProvider
from suggester.providers.echo import EchoProvider
from suggester.providers.google_translate import GoogleTranslateProvider
from suggester.providers.openai_translate import OpenAiTranslateProvider

PROVIDERS: dict[str, type[TranslationProvider]] = {
    "echo": EchoProvider,
    "google": GoogleTranslateProvider,
    "openai": OpenAiTranslateProvider,
}


def load_provider(name: str, **kwargs) -> TranslationProvider:
    """Load a translation provider by name."""
    cls = PROVIDERS.get(name)
    if cls is None:
        raise ValueError(
            f"Unknown provider '{name}'. Available: {list(PROVIDERS.keys())}"
        )
    return cls(**kwargs)
