"""Exception types raised by the DSGVO portal scraper."""


class ScraperError(Exception):
    """Base class for all scraper failures."""


class TransportError(ScraperError):
    """Network failure or unexpected HTTP status from the portal."""


class ParseError(ScraperError):
    """Portal response is not JSON or does not have the expected shape.

    ``payload`` holds the raw body when it was valid JSON, so the list
    payload can still be archived even though it could not be parsed.
    """

    def __init__(self, message: str, payload: str | None = None):
        super().__init__(message)
        self.payload = payload


class NotFoundError(ScraperError):
    """Portal reports that an incident id does not exist."""

    def __init__(self, incident_id: int):
        super().__init__(f"Incident {incident_id} not found on portal")
        self.incident_id = incident_id


class StorageError(ScraperError):
    """Database unavailable or a write failed."""


class ConflictError(StorageError):
    """Incident id is already stored."""

    def __init__(self, incident_id: int):
        super().__init__(f"Incident {incident_id} already exists")
        self.incident_id = incident_id


class SchemaMissingError(StorageError):
    """Required tables are not present in the database."""
