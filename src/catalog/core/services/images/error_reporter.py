"""Reporting of failures that are not surfaced to API callers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from loguru import logger


class ErrorReporter(ABC):
    """Receives ``(operation, record id, error)`` for swallowed failures."""

    @abstractmethod
    def report(self, operation: str, record_id: str, error: BaseException) -> None:
        """Record a failure of ``operation`` for the record ``record_id``."""


class LoggingErrorReporter(ErrorReporter):
    """Emits each report as a structured loguru warning."""

    def report(self, operation: str, record_id: str, error: BaseException) -> None:
        logger.bind(
            operation=operation,
            record_id=record_id,
            error_type=type(error).__name__,
        ).warning(
            "Preview image {} failed for product {}: {}", operation, record_id, error
        )
