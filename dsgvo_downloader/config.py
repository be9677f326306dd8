from __future__ import annotations

import os
from dataclasses import dataclass, replace

from dsgvo_downloader.collector.dsgvo_portal import DEFAULT_DETAIL_URL, DEFAULT_LIST_URL


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    request_delay_ms: int
    database_url: str
    list_url: str
    detail_url: str
    user_agent: str
    http_timeout_seconds: float
    log_level: str
    json_logs: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            request_delay_ms=_parse_int("REQUEST_DELAY_MS", 500, minimum=0),
            database_url=os.getenv("DATABASE_URL", "postgres://postgres@localhost:5432/dsgvo"),
            list_url=os.getenv("DSGVO_LIST_URL", DEFAULT_LIST_URL),
            detail_url=os.getenv("DSGVO_DETAIL_URL", DEFAULT_DETAIL_URL),
            user_agent=os.getenv("USER_AGENT", "dsgvo-downloader/1.0"),
            http_timeout_seconds=_parse_float("HTTP_TIMEOUT_SECONDS", 20.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            json_logs=_parse_bool("LOG_FORMAT_JSON", False),
        )

    def with_overrides(self, delay_ms: int | None = None, database_url: str | None = None) -> "Settings":
        """Значения из CLI имеют приоритет над окружением."""
        changes: dict[str, object] = {}
        if delay_ms is not None:
            changes["request_delay_ms"] = delay_ms
        if database_url is not None:
            changes["database_url"] = database_url
        return replace(self, **changes)
