"""Environment variable loading with defaults."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .envdefault first (base defaults), then .env (overrides)
_base_dir = Path(__file__).resolve().parent.parent
load_dotenv(_base_dir / ".envdefault")
load_dotenv(_base_dir / ".env", override=True)

# Provider
TRANSLATION_PROVIDER: str = os.environ.get("TRANSLATION_PROVIDER", "google")
DEFAULT_TARGET_LANG: str = os.environ.get("DEFAULT_TARGET_LANG", "en")
REQUEST_TIMEOUT: float = float(os.environ.get("REQUEST_TIMEOUT", "30"))
BATCH_CONCURRENCY: int = int(os.environ.get("BATCH_CONCURRENCY", "1"))

# Google web translate
GOOGLE_TRANSLATE_ENDPOINT: str = os.environ.get(
    "GOOGLE_TRANSLATE_ENDPOINT", "https://translate.googleapis.com/translate_a/single"
)

# OpenAI
OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
OPENAI_ORGANIZATION: str = os.environ.get("OPENAI_ORGANIZATION", "")
OPENAI_PROJECT: str = os.environ.get("OPENAI_PROJECT", "")
OPENAI_MODEL: str = os.environ.get("OPENAI_MODEL", "gpt-4o")
OPENAI_BASE_URL: str = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")

# Language detection cache (sqlite file shared across processes)
DETECTION_CACHE_PATH: str = os.environ.get(
    "DETECTION_CACHE_PATH",
    str(Path.home() / ".cache" / "suggester" / "lang_detect.sqlite3"),
)

# Logging
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
