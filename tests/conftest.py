"""Shared fixtures: sample portal payloads and in-memory collaborators."""

import json

import pytest

from dsgvo_scraper.errors import ConflictError
from dsgvo_scraper.models import IncidentDetail, IncidentSummary


def summary_data(incident_id: int) -> dict:
    return {
        "incidentID": incident_id,
        "orgPublishDate": "2023-03-01",
        "modifiedDate": "2023-03-02 14:30:00",
        "published": 1,
        "country": "Deutschland",
        "incidentText": f"Datenleck bei Organisation {incident_id}",
    }


def detail_data(incident_id: int) -> dict:
    return {
        "publishDate": "2023-03-03",
        "affectedObj": f"Organisation {incident_id}",
        "affectedType": "Unternehmen",
        "description_de": "Unbefugter Zugriff auf Kundendaten.",
        "tags": "Hackerangriff, Kundendaten",
        "href": f"https://example.org/vorfall/{incident_id}",
        "reference": json.dumps([{"url": "https://example.org/news", "title": "Bericht"}]),
    }


def list_payload(ids) -> str:
    return json.dumps([summary_data(i) for i in ids])


class FakePortal:
    """PortalClient stand-in. ``failures`` maps an id to the exception its detail fetch raises."""

    def __init__(self, ids, failures=None):
        self.ids = list(ids)
        self.failures = failures or {}
        self.detail_requests: list[int] = []
        self.list_error: Exception | None = None

    async def fetch_incident_list(self):
        if self.list_error is not None:
            raise self.list_error
        payload = list_payload(self.ids)
        return [IncidentSummary.model_validate(summary_data(i)) for i in self.ids], payload

    async def fetch_incident_detail(self, incident_id):
        self.detail_requests.append(incident_id)
        if incident_id in self.failures:
            raise self.failures[incident_id]
        return IncidentDetail.model_validate(detail_data(incident_id))


class FakeStore:
    """IncidentStore stand-in backed by a dict and a list."""

    def __init__(self, ids=(), has_tables=True):
        self.has_tables = has_tables
        self.incidents = {}
        self.archive: list[str] = []
        self.insert_order: list[int] = []
        for i in ids:
            self.incidents[i] = None

    def tables_exist(self):
        return self.has_tables

    def get_persisted_ids(self):
        return set(self.incidents)

    def archive_raw_list(self, payload):
        self.archive.append(payload)

    def insert_incident(self, record):
        if record.incident_id in self.incidents:
            raise ConflictError(record.incident_id)
        self.incidents[record.incident_id] = record
        self.insert_order.append(record.incident_id)


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()
