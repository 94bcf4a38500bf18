from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"Invalid {name}: expected > 0, got {value}")
    return value


@dataclass(frozen=True)
class ConsoleConfig:
    api_base_url: str
    api_key: str = ""
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "ConsoleConfig":
        """Read HUB_API_* settings from the environment, with optional .env override."""
        load_dotenv(env_file)
        api_base_url = (os.getenv("HUB_API_BASE_URL") or "").strip()
        if not api_base_url:
            raise ConfigError("Missing required config values: HUB_API_BASE_URL")
        return cls(
            api_base_url=api_base_url.rstrip("/"),
            api_key=(os.getenv("HUB_API_KEY") or "").strip(),
            connect_timeout_seconds=_read_float("HUB_CONNECT_TIMEOUT_SECONDS", "5"),
            read_timeout_seconds=_read_float("HUB_READ_TIMEOUT_SECONDS", "15"),
        )
