from __future__ import annotations


class DownloaderError(Exception):
    """Базовая ошибка загрузчика."""


class FatalSetupError(DownloaderError):
    """Ошибка подготовки прогона: без неё ни одна запись не может быть обработана."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step


class FetchError(DownloaderError):
    pass


class ParseError(DownloaderError):
    pass


class InvalidJsonError(ParseError):
    pass


class SchemaMismatchError(ParseError):
    pass


class ValidationError(DownloaderError):
    pass


class StorageError(DownloaderError):
    pass


# Ошибки, ограниченные одной записью: логируем и идём дальше
RECORD_ERRORS = (FetchError, ParseError, ValidationError, StorageError)
