from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

# Стандартные атрибуты LogRecord: всё остальное считается extra-полями
_RECORD_FIELDS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "message",
    "taskName",
}

NOISY_LOGGERS = ("httpx", "httpcore")


def _utc_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds")


class PlainFormatter(logging.Formatter):
    """
    Формат строки:
    2026-10-19T08:00:00.123+00:00 [dsgvo_downloader.sync] INFO: found 2 new incidents
    """

    def format(self, record: logging.LogRecord) -> str:
        line = f"{_utc_timestamp(record)} [{record.name}] {record.levelname}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """
    Одна JSON-строка на запись, extra-поля (например incident_id) попадают в объект:
    {"ts":"2026-10-19T08:00:00.123+00:00","level":"ERROR","logger":"dsgvo_downloader.sync","msg":"...","incident_id":4}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, val in record.__dict__.items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                payload[key] = val

        if record.exc_info:
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_logs else PlainFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
