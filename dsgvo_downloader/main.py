from __future__ import annotations

import argparse
import logging
import sys

from dsgvo_downloader.bootstrap import load_dotenv
from dsgvo_downloader.collector.dsgvo_portal import RegistryClient
from dsgvo_downloader.config import Settings
from dsgvo_downloader.errors import FatalSetupError, StorageError
from dsgvo_downloader.observability.logging import setup_logging
from dsgvo_downloader.storage.archive import RawSnapshotArchive
from dsgvo_downloader.storage.database import Database
from dsgvo_downloader.storage.repository import IncidentRepository
from dsgvo_downloader.sync import SyncEngine, SyncStats

logger = logging.getLogger("dsgvo_downloader")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from exc
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dsgvo-downloader",
        description="Sync the DSGVO portal security incident database into PostgreSQL",
    )
    parser.add_argument(
        "-d",
        "--delay",
        type=_non_negative_int,
        default=None,
        help=(
            "delay between detail requests in milliseconds (default 500), "
            "as to not overwhelm the server and disable the api"
        ),
    )
    parser.add_argument(
        "-u",
        "--database-url",
        default=None,
        help="database URL, the tables have to be provisioned beforehand (see --init-schema)",
    )
    parser.add_argument(
        "--init-schema",
        action="store_true",
        help="create the incidents and incident_history tables if they are missing",
    )
    return parser.parse_args(argv)


def process_once(settings: Settings, init_schema: bool = False) -> SyncStats:
    database = Database(settings.database_url)
    try:
        database.connect()
        if init_schema:
            database.apply_schema()

        client = RegistryClient(
            settings.user_agent,
            list_url=settings.list_url,
            detail_url=settings.detail_url,
            timeout=settings.http_timeout_seconds,
        )
        engine = SyncEngine(
            database,
            client,
            RawSnapshotArchive(database),
            IncidentRepository(database),
            delay_ms=settings.request_delay_ms,
        )
        return engine.run()
    finally:
        database.close()


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    try:
        settings = Settings.from_env().with_overrides(delay_ms=args.delay, database_url=args.database_url)
    except ValueError as exc:
        sys.exit(f"configuration error: {exc}")

    setup_logging(level=settings.log_level, json_logs=settings.json_logs)

    try:
        stats = process_once(settings, init_schema=args.init_schema)
    except FatalSetupError as exc:
        logger.error("sync aborted | %s", exc)
        sys.exit(1)
    except StorageError as exc:
        logger.error("sync aborted | step=init_schema error=%s", exc)
        sys.exit(1)

    if stats.failed:
        logger.warning("incidents left for the next run: %s", ", ".join(map(str, stats.failed_ids)))


if __name__ == "__main__":
    main()
