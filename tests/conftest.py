import json

import pytest

from dsgvo_downloader.storage.database import Database


def summary_payload(incident_id: int, **overrides) -> dict:
    payload = {
        "incidentID": incident_id,
        "orgPublishDate": "2024-03-01",
        "modifiedDate": "2024-03-02 10:15:00",
        "published": 1,
        "country": "DE",
        "incidentText": f"Incident {incident_id} text",
    }
    payload.update(overrides)
    return payload


def detail_payload(**overrides) -> dict:
    payload = {
        "publishDate": "2024-03-05",
        "affectedObj": "Stadtwerke Musterstadt",
        "affectedType": "Energieversorger",
        "description_de": "Ransomware-Angriff auf die Kundendatenbank.",
        "tags": "Ransomware,Kundendaten",
        "href": "https://example.org/news/1",
        "reference": json.dumps([{"title": "Pressemitteilung", "url": "https://example.org/pm"}]),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_summary():
    return summary_payload


@pytest.fixture
def make_detail():
    return detail_payload


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path}/dsgvo.db"


@pytest.fixture
def database(database_url):
    db = Database(database_url)
    db.connect()
    db.apply_schema()
    yield db
    db.close()
