"""Batch translation with per-item failure isolation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Mapping
from typing import TypeVar

from suggester.outcome import Failure, Outcome, Success
from suggester.reporting import ErrorReporter

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

TranslateFn = Callable[[str | None], Awaitable[str]]


async def translate_each(
    translate: TranslateFn,
    texts: Mapping[K, str | None],
    reporter: ErrorReporter,
    max_concurrency: int = 1,
) -> dict[K, Outcome]:
    """Translate every entry independently.

    A failing item is reported once and recorded as a Failure; the other
    items are unaffected. Keys come back in input order.

    Args:
        translate: Single-text translate coroutine function.
        texts: Mapping of key -> source text.
        reporter: Sink for caught per-item errors.
        max_concurrency: Max in-flight engine calls (1 = sequential).

    Returns:
        Mapping of key -> Success(translation) | Failure(error).
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _one(key: K, text: str | None) -> Outcome:
        async with semaphore:
            try:
                return Success(await translate(text))
            except Exception as exc:
                reporter.report(exc, context=f"translation failed for key {key!r}")
                return Failure(exc)

    keys = list(texts.keys())
    outcomes = await asyncio.gather(*[_one(key, texts[key]) for key in keys])
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    if failed:
        logger.info("Batch translated %d/%d items", len(keys) - failed, len(keys))
    return dict(zip(keys, outcomes))


def unwrap(outcomes: Mapping[K, Outcome]) -> dict[K, str | None]:
    """Flatten outcomes: translations for successes, None for failures."""
    return {
        key: outcome.value if isinstance(outcome, Success) else None
        for key, outcome in outcomes.items()
    }
