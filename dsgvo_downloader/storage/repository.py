from __future__ import annotations

import json
import logging

from dsgvo_downloader.domain.models import IncidentDetail, IncidentSummary, PersistedIncident
from dsgvo_downloader.domain.normalizer import merge_incident
from dsgvo_downloader.storage.database import Database

logger = logging.getLogger(__name__)

INCIDENT_COLUMNS = (
    "incident_id", "org_publish_date", "modified_date", "published", "publish_date",
    "affected_obj", "affected_type", "country", "details_text", "tags", "href",
    '"references"', "incident_text",
)


class IncidentRepository:
    def __init__(self, database: Database) -> None:
        self._db = database

    def existing_ids(self) -> set[int]:
        with self._db.transaction("fetch existing incident ids") as cur:
            cur.execute("SELECT incident_id FROM incidents")
            ids = {int(row[0]) for row in cur.fetchall()}
        logger.debug("found %d existing incident ids", len(ids))
        return ids

    def insert(self, summary: IncidentSummary, detail: IncidentDetail) -> None:
        """
        Проверяет references и записывает объединённую запись. Обновлений нет.

        SyncEngine вызывает merge_incident и save по отдельности, чтобы различать
        в логе ошибку проверки (validated не достигнут) и ошибку записи.
        """
        self.save(merge_incident(summary, detail))

    def save(self, incident: PersistedIncident) -> None:
        ph = self._db.ph()
        placeholders = [ph] * len(INCIDENT_COLUMNS)
        placeholders[INCIDENT_COLUMNS.index('"references"')] = self._db.json_ph()
        adapt = self._db.adapt

        with self._db.transaction(f"store incident {incident.incident_id}") as cur:
            cur.execute(
                f"INSERT INTO incidents ({', '.join(INCIDENT_COLUMNS)}) "
                f"VALUES ({', '.join(placeholders)})",
                (
                    incident.incident_id,
                    adapt(incident.org_publish_date),
                    adapt(incident.modified_date),
                    incident.published,
                    adapt(incident.publish_date),
                    incident.affected_obj,
                    incident.affected_type,
                    incident.country,
                    incident.details_text,
                    incident.tags,
                    incident.href,
                    json.dumps(incident.references, ensure_ascii=False),
                    incident.incident_text,
                ),
            )
        logger.info("stored incident %s", incident.incident_id)

    def count(self) -> int:
        with self._db.transaction("count incidents") as cur:
            cur.execute("SELECT COUNT(*) FROM incidents")
            return int(cur.fetchone()[0])
