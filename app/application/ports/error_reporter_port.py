from __future__ import annotations

from typing import Any, Protocol


class ErrorReporterPort(Protocol):
    def capture(self, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        ...
