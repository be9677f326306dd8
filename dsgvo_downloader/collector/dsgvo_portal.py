from __future__ import annotations

import logging

import httpx

from dsgvo_downloader.domain.models import IncidentDetail, IncidentSummary
from dsgvo_downloader.domain.normalizer import parse_detail, parse_snapshot
from dsgvo_downloader.errors import FetchError

logger = logging.getLogger(__name__)

REGISTRY_ORIGIN = "https://www.dsgvo-portal.de"
DEFAULT_LIST_URL = f"{REGISTRY_ORIGIN}/sicherheitsvorfall-datenbank/?cmd=getIncidents"
DEFAULT_DETAIL_URL = f"{REGISTRY_ORIGIN}/sicherheitsvorfall-datenbank/incidentDetails.php?incident={{incident_id}}"

# Без точного Referer портал отдаёт HTML-страницу ошибки вместо JSON
LIST_REFERER = f"{REGISTRY_ORIGIN}/sicherheitsvorfall-datenbank/"
DETAIL_REFERER = f"{REGISTRY_ORIGIN}/sicherheitsvorfaelle/"


class RegistryClient:
    def __init__(
        self,
        user_agent: str,
        list_url: str = DEFAULT_LIST_URL,
        detail_url: str = DEFAULT_DETAIL_URL,
        timeout: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._list_url = list_url
        self._detail_url = detail_url
        self._timeout = timeout
        self._transport = transport

    def fetch_snapshot(self) -> tuple[str, list[IncidentSummary]]:
        """
        Загружает полный список инцидентов.

        Возвращает тело ответа как есть (для архива) и разобранный список.
        Если ответ не разберётся, тело теряется вместе с исключением, поэтому
        SyncEngine вызывает fetch_snapshot_body и parse_snapshot по отдельности,
        архивируя тело между ними.
        """
        body = self.fetch_snapshot_body()
        return body, parse_snapshot(body)

    def fetch_snapshot_body(self) -> str:
        logger.info("fetching incident list | url=%s", self._list_url)
        body = self._get(self._list_url, LIST_REFERER, "incident list")
        if not body:
            raise FetchError("incident list: empty response body")
        return body

    def fetch_detail(self, incident_id: int) -> IncidentDetail:
        url = self._detail_url.format(incident_id=incident_id)
        logger.debug("fetching incident details | id=%s url=%s", incident_id, url)
        body = self._get(url, DETAIL_REFERER, f"details for incident {incident_id}")
        logger.debug("incident details body | id=%s body=%s", incident_id, body)
        return parse_detail(body, incident_id)

    def _get(self, url: str, referer: str, what: str) -> str:
        try:
            with httpx.Client(
                headers=self._headers,
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.get(url, headers={"Referer": referer})
        except httpx.HTTPError as exc:
            raise FetchError(f"{what}: request failed ({exc})") from exc

        logger.debug("%s: status=%s", what, response.status_code)
        if not response.is_success:
            raise FetchError(f"{what}: unexpected status code {response.status_code}")
        return response.text.strip()
