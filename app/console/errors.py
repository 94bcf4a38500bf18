from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ConsoleApiError(Exception):
    code: str
    message: str
    details: object | None = None
    correlation_id: str | None = None
    status_code: int = 0

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.code}: {self.message}"
