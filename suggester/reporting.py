"""Observability side channel for failures that are caught and not re-raised."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """Receives every exception the batch and detection layers swallow.

    Implementations are called exactly once per caught failure.
    """

    def report(self, error: BaseException, context: str | None = None) -> None: ...


class LoggingReporter:
    """Default reporter: logs the exception with its traceback."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def report(self, error: BaseException, context: str | None = None) -> None:
        self.log.error(
            "%s: %s",
            context or "unhandled error",
            error,
            exc_info=(type(error), error, error.__traceback__),
        )


class CollectingReporter:
    """Keeps reported errors in memory. Useful in tests and batch summaries."""

    def __init__(self) -> None:
        self.errors: list[tuple[BaseException, str | None]] = []

    def report(self, error: BaseException, context: str | None = None) -> None:
        self.errors.append((error, context))
