from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any

from dsgvo_downloader.domain.models import IncidentDetail, IncidentSummary, PersistedIncident
from dsgvo_downloader.errors import InvalidJsonError, SchemaMismatchError, ValidationError

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _reject_constant(name: str) -> Any:
    # NaN и Infinity не входят в JSON, jsonb в PostgreSQL их не принимает
    raise ValueError(f"{name} is not a valid JSON value")


def _loads(body: str, what: str) -> Any:
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except ValueError as exc:
        raise InvalidJsonError(f"{what}: invalid JSON ({exc})") from exc


def _require(raw: dict[str, Any], key: str, what: str) -> Any:
    if key not in raw:
        raise SchemaMismatchError(f"{what}: missing field '{key}'")
    return raw[key]


def _int_field(raw: dict[str, Any], key: str, what: str) -> int:
    value = _require(raw, key, what)
    # bool — подкласс int, но в ответе реестра это всегда ошибка формы
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaMismatchError(f"{what}: field '{key}' must be an integer, got {value!r}")
    return value


def _str_field(raw: dict[str, Any], key: str, what: str) -> str:
    value = _require(raw, key, what)
    if not isinstance(value, str):
        raise SchemaMismatchError(f"{what}: field '{key}' must be a string, got {value!r}")
    return value


def _date_field(raw: dict[str, Any], key: str, what: str) -> date:
    text = _str_field(raw, key, what)
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as exc:
        raise SchemaMismatchError(f"{what}: field '{key}' is not a date: {text!r}") from exc


def _datetime_field(raw: dict[str, Any], key: str, what: str) -> datetime:
    text = _str_field(raw, key, what)
    try:
        return datetime.strptime(text, DATETIME_FORMAT)
    except ValueError as exc:
        raise SchemaMismatchError(f"{what}: field '{key}' is not a timestamp: {text!r}") from exc


def summary_from_payload(raw: Any) -> IncidentSummary:
    if not isinstance(raw, dict):
        raise SchemaMismatchError(f"incident summary must be an object, got {type(raw).__name__}")

    incident_id = _int_field(raw, "incidentID", "incident summary")
    what = f"incident {incident_id}"
    return IncidentSummary(
        incident_id=incident_id,
        org_publish_date=_date_field(raw, "orgPublishDate", what),
        modified_date=_datetime_field(raw, "modifiedDate", what),
        published=_int_field(raw, "published", what),
        country=_str_field(raw, "country", what),
        incident_text=_str_field(raw, "incidentText", what),
    )


def parse_snapshot(body: str) -> list[IncidentSummary]:
    """
    Разбирает тело ответа списка инцидентов.

    Повторяющиеся incidentID внутри одного снимка схлопываются:
    остаётся первое вхождение, порядок снимка сохраняется.
    """
    payload = _loads(body, "incident list")
    if not isinstance(payload, list):
        raise SchemaMismatchError(f"incident list must be a JSON array, got {type(payload).__name__}")

    summaries: list[IncidentSummary] = []
    seen: set[int] = set()
    for raw in payload:
        summary = summary_from_payload(raw)
        if summary.incident_id in seen:
            continue
        seen.add(summary.incident_id)
        summaries.append(summary)
    return summaries


def parse_detail(body: str, incident_id: int) -> IncidentDetail:
    what = f"details for incident {incident_id}"
    raw = _loads(body, what)
    if not isinstance(raw, dict):
        raise SchemaMismatchError(f"{what}: must be a JSON object, got {type(raw).__name__}")

    return IncidentDetail(
        publish_date=_date_field(raw, "publishDate", what),
        affected_obj=_str_field(raw, "affectedObj", what),
        affected_type=_str_field(raw, "affectedType", what),
        details_text=_str_field(raw, "description_de", what),
        tags=_str_field(raw, "tags", what),
        href=_str_field(raw, "href", what),
        reference=_str_field(raw, "reference", what),
    )


def parse_references(text: str, incident_id: int) -> Any:
    """Проверяет, что поле reference содержит корректный JSON, и возвращает его как есть."""
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ValidationError(f"incident {incident_id}: references are not valid JSON ({exc})") from exc


def merge_incident(summary: IncidentSummary, detail: IncidentDetail) -> PersistedIncident:
    return PersistedIncident(
        incident_id=summary.incident_id,
        org_publish_date=summary.org_publish_date,
        modified_date=summary.modified_date,
        published=summary.published,
        publish_date=detail.publish_date,
        affected_obj=detail.affected_obj,
        affected_type=detail.affected_type,
        country=summary.country,
        details_text=detail.details_text,
        tags=detail.tags,
        href=detail.href,
        references=parse_references(detail.reference, summary.incident_id),
        incident_text=summary.incident_text,
    )
