import json
import logging

import pytest

httpx = pytest.importorskip("httpx")

from dsgvo_downloader import main as main_module
from dsgvo_downloader.collector.dsgvo_portal import RegistryClient
from dsgvo_downloader.domain.normalizer import parse_detail, parse_snapshot
from dsgvo_downloader.main import main, parse_args
from dsgvo_downloader.storage.archive import RawSnapshotArchive
from dsgvo_downloader.storage.database import Database
from dsgvo_downloader.storage.repository import IncidentRepository


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REQUEST_DELAY_MS", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    # setup_logging пересоздаёт хендлеры root-логгера и ломает caplog
    monkeypatch.setattr(main_module, "setup_logging", lambda **kwargs: None)


def _patch_registry(monkeypatch, handler) -> list[httpx.Request]:
    requests: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    def factory(user_agent, **kwargs):
        return RegistryClient(user_agent, transport=httpx.MockTransport(recording))

    monkeypatch.setattr(main_module, "RegistryClient", factory)
    return requests


def test_parse_args_defaults() -> None:
    args = parse_args([])

    assert args.delay is None
    assert args.database_url is None
    assert args.init_schema is False


def test_parse_args_rejects_negative_delay() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--delay", "-5"])


def test_end_to_end_partial_failure(monkeypatch, database, database_url, make_summary, make_detail, caplog) -> None:
    repo = IncidentRepository(database)
    for incident_id in (1, 2):
        repo.insert(
            parse_snapshot(json.dumps([make_summary(incident_id)]))[0],
            parse_detail(json.dumps(make_detail()), incident_id),
        )
    archived_before = RawSnapshotArchive(database).count()

    def handler(request: httpx.Request) -> httpx.Response:
        if "cmd=getIncidents" in str(request.url):
            return httpx.Response(200, json=[make_summary(i) for i in (1, 2, 3, 4)])
        if request.url.params.get("incident") == "3":
            return httpx.Response(200, json=make_detail())
        return httpx.Response(500)

    requests = _patch_registry(monkeypatch, handler)

    with caplog.at_level(logging.INFO):
        main(["-u", database_url, "-d", "0"])

    assert IncidentRepository(database).existing_ids() == {1, 2, 3}
    assert RawSnapshotArchive(database).count() == archived_before + 1
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].incident_id == 4
    assert [r.url.params.get("incident") for r in requests[1:]] == ["3", "4"]


def test_missing_tables_exit_non_zero_without_requests(monkeypatch, database_url) -> None:
    requests = _patch_registry(monkeypatch, lambda request: httpx.Response(200, json=[]))

    with pytest.raises(SystemExit) as excinfo:
        main(["--database-url", database_url])

    assert excinfo.value.code == 1
    assert requests == []


def test_unreachable_list_endpoint_exits_non_zero(monkeypatch, database_url) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    _patch_registry(monkeypatch, handler)

    with pytest.raises(SystemExit) as excinfo:
        main(["-u", database_url, "--init-schema"])

    assert excinfo.value.code == 1


def test_init_schema_creates_tables(monkeypatch, database_url) -> None:
    _patch_registry(monkeypatch, lambda request: httpx.Response(200, json=[]))

    main(["-u", database_url, "--init-schema"])

    db = Database(database_url)
    try:
        db.verify_tables()
        assert RawSnapshotArchive(db).count() == 1
    finally:
        db.close()


def test_negative_delay_in_env_exits_before_sync(monkeypatch, database_url) -> None:
    requests = _patch_registry(monkeypatch, lambda request: httpx.Response(200, json=[]))
    monkeypatch.setenv("REQUEST_DELAY_MS", "-100")

    with pytest.raises(SystemExit) as excinfo:
        main(["-u", database_url, "--init-schema"])

    assert "REQUEST_DELAY_MS" in str(excinfo.value.code)
    assert requests == []
