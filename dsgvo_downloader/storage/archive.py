from __future__ import annotations

import logging

from dsgvo_downloader.storage.database import Database

logger = logging.getLogger(__name__)


class RawSnapshotArchive:
    """Журнал сырых ответов списка инцидентов. Только запись, назад не читается."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def archive(self, body: str) -> None:
        logger.debug("archiving raw incident list | size=%d", len(body))
        with self._db.transaction("store raw response") as cur:
            cur.execute(
                f"INSERT INTO incident_history (content) VALUES ({self._db.json_ph()})",
                (body,),
            )

    def count(self) -> int:
        with self._db.transaction("count raw responses") as cur:
            cur.execute("SELECT COUNT(*) FROM incident_history")
            return int(cur.fetchone()[0])
