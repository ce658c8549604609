from __future__ import annotations

import logging
from typing import Any


logger = logging.getLogger(__name__)


class LoggingErrorReporter:
    def capture(self, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        details = " ".join(f"{key}={value}" for key, value in sorted((context or {}).items()))
        logger.error(
            "error_reporter: unhandled_exception type=%s %s",
            type(exc).__name__,
            details,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
