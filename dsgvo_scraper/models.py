"""Pydantic models for DSGVO portal incident data."""

import json
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MODIFIED_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class IncidentSummary(BaseModel):
    """One entry of the incident list returned by ``cmd=getIncidents``."""

    model_config = ConfigDict(populate_by_name=True)

    incident_id: int = Field(..., alias="incidentID")
    org_publish_date: date = Field(..., alias="orgPublishDate")
    modified_date: datetime = Field(..., alias="modifiedDate")
    # Meaning unknown upstream, stored verbatim
    published: int
    country: str
    incident_text: str = Field(..., alias="incidentText")

    @field_validator("modified_date", mode="before")
    @classmethod
    def parse_modified_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return datetime.strptime(value, MODIFIED_DATE_FORMAT)
        return value


class IncidentDetail(BaseModel):
    """Detail record returned by ``incidentDetails.php``."""

    model_config = ConfigDict(populate_by_name=True)

    publish_date: date = Field(..., alias="publishDate")
    affected_obj: str = Field(..., alias="affectedObj")
    affected_type: str = Field(..., alias="affectedType")
    details_text: str = Field(..., alias="description_de")
    tags: str
    href: str
    references: Any = Field(..., alias="reference")

    @field_validator("references", mode="before")
    @classmethod
    def decode_references(cls, value: Any) -> Any:
        """The portal sends the reference list as a JSON document inside a string."""
        if not isinstance(value, str):
            raise ValueError("reference must be a JSON string")
        return json.loads(value)


class IncidentRecord(BaseModel):
    """A complete row of the ``incidents`` table."""

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

    @classmethod
    def assemble(cls, summary: IncidentSummary, detail: IncidentDetail) -> "IncidentRecord":
        """Merge a list summary and its detail record into one row."""
        return cls(
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
            references=detail.references,
            incident_text=summary.incident_text,
        )
