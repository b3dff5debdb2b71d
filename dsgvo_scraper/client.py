"""HTTP client for the dsgvo-portal.de incident database.

The portal exposes two JSON endpoints: a list of every known incident and a
detail page per incident id. Neither is versioned or documented, so the query
strings and headers below mirror what the portal's own frontend sends.
"""

import json
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import NotFoundError, ParseError, TransportError
from .models import IncidentDetail, IncidentSummary

logger = logging.getLogger(__name__)

BASE_URL = "https://www.dsgvo-portal.de"
LIST_URL = f"{BASE_URL}/sicherheitsvorfall-datenbank/?cmd=getIncidents"
LIST_REFERER = f"{BASE_URL}/sicherheitsvorfall-datenbank/"
DETAIL_URL = f"{BASE_URL}/sicherheitsvorfall-datenbank/incidentDetails.php"
DETAIL_REFERER = f"{BASE_URL}/sicherheitsvorfaelle/"

REQUEST_TIMEOUT = 30.0
NOT_FOUND_STATUSES = (404, 410)

_summary_list = TypeAdapter(list[IncidentSummary])


def _decode(body: str, what: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse {what}: {e}") from e


def parse_incident_list(body: str) -> list[IncidentSummary]:
    """Parse the body of the list query into incident summaries.

    Raises ParseError if the body is not JSON or not a list of incidents. When
    the body is valid JSON the error carries it as ``payload``.
    """
    data = _decode(body, "incident list")
    try:
        return _summary_list.validate_python(data)
    except ValidationError as e:
        raise ParseError(
            f"Unexpected incident list shape: {e.error_count()} validation errors",
            payload=body,
        ) from e


def parse_incident_detail(incident_id: int, body: str) -> IncidentDetail:
    """Parse the body of a detail query.

    An empty body or an empty JSON value means the portal has no such incident.
    """
    if not body:
        raise NotFoundError(incident_id)
    data = _decode(body, f"details for incident {incident_id}")
    if data is None or data == {} or data == []:
        raise NotFoundError(incident_id)
    try:
        return IncidentDetail.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Failed to parse details for incident {incident_id}: {e}") from e


def create_http_client() -> httpx.AsyncClient:
    """Create the httpx client used for all portal requests."""
    return httpx.AsyncClient(
        timeout=REQUEST_TIMEOUT,
        headers={"Accept": "application/json"},
        follow_redirects=True,
    )


class PortalClient:
    """Issues list and detail queries against the portal. Never retries."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _get(self, url: str, referer: str, params: dict | None = None) -> httpx.Response:
        try:
            response = await self.http.get(url, params=params, headers={"Referer": referer})
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e
        logger.debug("GET %s -> %s", response.url, response.status_code)
        return response

    async def fetch_incident_list(self) -> tuple[list[IncidentSummary], str]:
        """Fetch every incident summary.

        Returns the parsed summaries together with the raw (trimmed) body.
        """
        logger.info("Fetching incidents from website")
        response = await self._get(LIST_URL, LIST_REFERER)
        if not response.is_success:
            raise TransportError(f"Unexpected status code for incident list: {response.status_code}")

        body = response.text.strip()
        summaries = parse_incident_list(body)
        logger.debug("Incident list contains %d entries", len(summaries))
        return summaries, body

    async def fetch_incident_detail(self, incident_id: int) -> IncidentDetail:
        """Fetch the detail record for a single incident."""
        logger.debug("Fetching incident detail from website for incident %d", incident_id)
        response = await self._get(DETAIL_URL, DETAIL_REFERER, params={"incident": incident_id})

        if response.status_code in NOT_FOUND_STATUSES:
            raise NotFoundError(incident_id)
        if not response.is_success:
            raise TransportError(
                f"Unexpected status code for incident {incident_id}: {response.status_code}"
            )

        body = response.text.strip()
        logger.debug("Response body for incident %d: %s", incident_id, body)
        return parse_incident_detail(incident_id, body)
