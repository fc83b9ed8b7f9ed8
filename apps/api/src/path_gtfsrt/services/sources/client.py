"""PATH source API client.

The source API publishes the station and route identifier mappings used by
the GTFS static feed, plus the upcoming trains at each station.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
from pydantic import Field, ValidationError

from path_gtfsrt.logging import get_logger
from path_gtfsrt.models import Incident, Route, Station, Train, WireModel

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 5.0
DEFAULT_BASE_URL = "https://path.api.razza.dev/v1/"


class SourceFetchError(Exception):
    """Raised when an upstream source cannot be queried or decoded."""


class SourceClient(Protocol):
    """Trip-update side of the upstream data."""

    async def get_station_to_stop_id(self) -> dict[Station, str]: ...

    async def get_route_to_route_id(self) -> dict[Route, str]: ...

    async def get_trains_at_station(self, station: Station) -> list[Train]: ...


class IncidentClient(Protocol):
    """Alert side of the upstream data."""

    async def get_incidents(self) -> list[Incident]: ...


class _Response(WireModel):
    pass


class _StationEntry(_Response):
    station: str
    id: str


class _StationsResponse(_Response):
    stations: list[_StationEntry] = Field(default_factory=list)


class _RouteEntry(_Response):
    route: str
    id: str


class _RoutesResponse(_Response):
    routes: list[_RouteEntry] = Field(default_factory=list)


class _RealtimeResponse(_Response):
    upcoming_trains: list[Train] = Field(default_factory=list)


async def get_json(
    url: str,
    timeout_sec: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """GET a URL and decode its JSON body.

    Raises:
        SourceFetchError: On transport errors, non-2xx responses or an
            undecodable body.
    """
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            follow_redirects=True,
            transport=transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as exc:
        msg = f"{url} returned HTTP {exc.response.status_code}"
        raise SourceFetchError(msg) from exc
    except httpx.RequestError as exc:
        msg = f"request to {url} failed: {exc!r}"
        raise SourceFetchError(msg) from exc
    except ValueError as exc:
        msg = f"{url} returned a body that is not JSON"
        raise SourceFetchError(msg) from exc


class HttpSourceClient:
    """Reads the PATH source API over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout_sec = timeout_sec
        self._transport = transport

    async def get_station_to_stop_id(self) -> dict[Station, str]:
        resp = await self._get("stations", _StationsResponse)
        mapping: dict[Station, str] = {}
        for entry in resp.stations:
            try:
                mapping[Station(entry.station)] = entry.id
            except ValueError:
                logger.warning("Skipping unknown station", station=entry.station)
        return mapping

    async def get_route_to_route_id(self) -> dict[Route, str]:
        resp = await self._get("routes", _RoutesResponse)
        mapping: dict[Route, str] = {}
        for entry in resp.routes:
            try:
                mapping[Route(entry.route)] = entry.id
            except ValueError:
                logger.warning("Skipping unknown route", route=entry.route)
        return mapping

    async def get_trains_at_station(self, station: Station) -> list[Train]:
        resp = await self._get(
            f"stations/{station.value.lower()}/realtime", _RealtimeResponse
        )
        return list(resp.upcoming_trains)

    async def _get(self, endpoint: str, model: type[_Response]) -> Any:
        url = self.base_url + endpoint
        logger.debug("Querying PATH source API", url=url)
        body = await get_json(url, self.timeout_sec, self._transport)
        try:
            return model.model_validate(body)
        except ValidationError as exc:
            msg = f"unexpected response shape from {url}"
            raise SourceFetchError(msg) from exc
