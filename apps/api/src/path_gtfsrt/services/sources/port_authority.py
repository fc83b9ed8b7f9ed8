"""Port Authority Everbridge incident client."""

from __future__ import annotations

import httpx
from pydantic import Field, ValidationError

from path_gtfsrt.logging import get_logger
from path_gtfsrt.models import Incident, WireModel
from path_gtfsrt.services.sources.client import SourceFetchError, get_json

logger = get_logger(__name__)

PORT_AUTHORITY_BASE_URL = "https://www.panynj.gov/"
PORT_AUTHORITY_INCIDENTS_ENDPOINT = (
    "bin/portauthority/everbridge/incidents?status=All&department=Path"
)
DEFAULT_TIMEOUT_SEC = 30.0


class _IncidentData(WireModel):
    incident_message: Incident = Field(default_factory=Incident)


class _IncidentsResponse(WireModel):
    status: str = ""
    data: list[_IncidentData] = Field(default_factory=list)


class PortAuthorityClient:
    """Reads PATH incidents from the Port Authority website."""

    def __init__(
        self,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        base_url: str = PORT_AUTHORITY_BASE_URL,
        endpoint: str = PORT_AUTHORITY_INCIDENTS_ENDPOINT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self.url = base_url + endpoint
        self._transport = transport

    async def get_incidents(self) -> list[Incident]:
        """Fetch the current incident list.

        Raises:
            SourceFetchError: If the request fails or the feed does not report
                ``Success``.
        """
        logger.debug("Querying Port Authority incidents", url=self.url)
        body = await get_json(self.url, self.timeout_sec, self._transport)
        try:
            resp = _IncidentsResponse.model_validate(body)
        except ValidationError as exc:
            msg = "unexpected response shape from Port Authority incidents"
            raise SourceFetchError(msg) from exc

        if resp.status != "Success":
            msg = f"error getting incidents: {resp.status}"
            raise SourceFetchError(msg)

        return [item.incident_message for item in resp.data]
