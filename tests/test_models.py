"""Tests for the portal data models."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from dsgvo_scraper.models import IncidentDetail, IncidentRecord, IncidentSummary

from conftest import detail_data, summary_data


def test_summary_parses_portal_keys():
    summary = IncidentSummary.model_validate(summary_data(42))
    assert summary.incident_id == 42
    assert summary.org_publish_date == date(2023, 3, 1)
    assert summary.modified_date == datetime(2023, 3, 2, 14, 30, 0)
    assert summary.country == "Deutschland"


def test_summary_keeps_published_verbatim():
    data = summary_data(1)
    data["published"] = 7
    assert IncidentSummary.model_validate(data).published == 7


def test_summary_rejects_bad_modified_date():
    data = summary_data(1)
    data["modifiedDate"] = "02.03.2023"
    with pytest.raises(ValidationError):
        IncidentSummary.model_validate(data)


def test_summary_requires_all_fields():
    data = summary_data(1)
    del data["incidentText"]
    with pytest.raises(ValidationError):
        IncidentSummary.model_validate(data)


def test_detail_decodes_reference_string():
    detail = IncidentDetail.model_validate(detail_data(5))
    assert detail.references == [{"url": "https://example.org/news", "title": "Bericht"}]
    assert detail.details_text == "Unbefugter Zugriff auf Kundendaten."


def test_detail_rejects_reference_that_is_not_json():
    data = detail_data(5)
    data["reference"] = "not json ["
    with pytest.raises(ValidationError):
        IncidentDetail.model_validate(data)


def test_assemble_merges_summary_and_detail():
    summary = IncidentSummary.model_validate(summary_data(9))
    detail = IncidentDetail.model_validate(detail_data(9))

    record = IncidentRecord.assemble(summary, detail)

    assert record.incident_id == 9
    assert record.incident_text == "Datenleck bei Organisation 9"
    assert record.publish_date == date(2023, 3, 3)
    assert record.href == "https://example.org/vorfall/9"
    assert record.references == detail.references
