from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from dsgvo_downloader.collector.dsgvo_portal import RegistryClient
from dsgvo_downloader.domain.models import IncidentSummary, RecordState
from dsgvo_downloader.domain.normalizer import merge_incident, parse_snapshot
from dsgvo_downloader.errors import (
    RECORD_ERRORS,
    FatalSetupError,
    FetchError,
    ParseError,
    StorageError,
)
from dsgvo_downloader.storage.archive import RawSnapshotArchive
from dsgvo_downloader.storage.database import Database
from dsgvo_downloader.storage.repository import IncidentRepository

logger = logging.getLogger(__name__)

# Ниже этого значения портал начинает отключать API
MIN_REQUEST_DELAY_MS = 500


@dataclass
class SyncStats:
    """Статистика одного прогона."""
    fetched: int = 0
    existing: int = 0
    new: int = 0
    stored: int = 0
    failed: int = 0
    delays: int = 0
    failed_ids: list[int] = field(default_factory=list)
    states: dict[int, RecordState] = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"fetched={self.fetched} | existing={self.existing} | new={self.new} | "
            f"stored={self.stored} | failed={self.failed}"
        )


def select_new_incidents(
    snapshot: Iterable[IncidentSummary], existing_ids: set[int]
) -> list[IncidentSummary]:
    return [summary for summary in snapshot if summary.incident_id not in existing_ids]


class SyncEngine:
    def __init__(
        self,
        database: Database,
        client: RegistryClient,
        archive: RawSnapshotArchive,
        incidents: IncidentRepository,
        delay_ms: int = MIN_REQUEST_DELAY_MS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._db = database
        self._client = client
        self._archive = archive
        self._incidents = incidents
        self._delay_seconds = delay_ms / 1000
        self._sleep = sleep

        if delay_ms < 0:
            raise ValueError(f"request delay must not be negative, got {delay_ms}ms")

        if delay_ms < MIN_REQUEST_DELAY_MS:
            logger.warning(
                "request delay %dms is below the %dms minimum, the registry may block the API",
                delay_ms,
                MIN_REQUEST_DELAY_MS,
            )

    def run(self) -> SyncStats:
        """
        Один прогон синхронизации.

        Ошибки подготовки (схема, список, архив) поднимаются как FatalSetupError.
        Ошибки отдельных записей логируются и не прерывают прогон: запись
        не попадает в БД и будет снова считаться новой при следующем запуске.
        """
        stats = SyncStats()

        self._db.verify_tables()

        try:
            existing_ids = self._incidents.existing_ids()
        except StorageError as exc:
            raise FatalSetupError("existing_ids", str(exc)) from exc
        stats.existing = len(existing_ids)

        snapshot = self._fetch_snapshot()
        stats.fetched = len(snapshot)

        new_incidents = select_new_incidents(snapshot, existing_ids)
        stats.new = len(new_incidents)
        logger.info("found %d new incidents", stats.new)

        for index, summary in enumerate(new_incidents):
            if index:
                self._sleep(self._delay_seconds)
                stats.delays += 1
            self._process_incident(summary, stats)

        logger.info("sync complete | %s", stats.summary())
        return stats

    def _fetch_snapshot(self) -> list[IncidentSummary]:
        try:
            body = self._client.fetch_snapshot_body()
        except FetchError as exc:
            raise FatalSetupError("fetch_list", str(exc)) from exc

        # Архив пишется до разбора, чтобы сломанный ответ остался для разбора вручную
        try:
            self._archive.archive(body)
        except StorageError as exc:
            raise FatalSetupError("archive", str(exc)) from exc

        try:
            return parse_snapshot(body)
        except ParseError as exc:
            raise FatalSetupError("parse_list", str(exc)) from exc

    def _process_incident(self, summary: IncidentSummary, stats: SyncStats) -> None:
        incident_id = summary.incident_id
        state = RecordState.PENDING
        logger.debug("processing incident %s", incident_id)

        try:
            detail = self._client.fetch_detail(incident_id)
            state = RecordState.DETAIL_FETCHED
            incident = merge_incident(summary, detail)
            state = RecordState.VALIDATED
            self._incidents.save(incident)
            state = RecordState.STORED
        except RECORD_ERRORS as exc:
            logger.error(
                "failed to process incident %s | state=%s error=%s",
                incident_id,
                state.value,
                exc,
                extra={"incident_id": incident_id},
            )
            stats.states[incident_id] = RecordState.FAILED
            stats.failed += 1
            stats.failed_ids.append(incident_id)
            return

        stats.states[incident_id] = state
        stats.stored += 1
