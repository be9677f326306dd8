from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class IncidentSummary:
    incident_id: int
    org_publish_date: date
    modified_date: datetime
    published: int
    country: str
    incident_text: str


@dataclass(frozen=True)
class IncidentDetail:
    publish_date: date
    affected_obj: str
    affected_type: str
    details_text: str
    tags: str
    href: str
    reference: str


@dataclass(frozen=True)
class PersistedIncident:
    incident_id: int
    org_publish_date: date
    modified_date: datetime
    published: int
    publish_date: date
    affected_obj: str
    affected_type: str
    country: str
    details_text: str
    tags: str
    href: str
    references: Any
    incident_text: str


class RecordState(str, Enum):
    PENDING = "pending"
    DETAIL_FETCHED = "detail_fetched"
    VALIDATED = "validated"
    STORED = "stored"
    FAILED = "failed"
