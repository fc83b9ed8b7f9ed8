"""One-time resolution of the static identifier mappings."""

from __future__ import annotations

from path_gtfsrt.logging import get_logger
from path_gtfsrt.models import StaticData
from path_gtfsrt.services.sources.client import SourceClient

logger = get_logger(__name__)


async def get_static_data(client: SourceClient) -> StaticData:
    """Resolve station and route identifiers before any feed cycle runs.

    Raises:
        SourceFetchError: If either mapping cannot be fetched. Callers treat
            this as fatal.
    """
    station_to_stop_id = await client.get_station_to_stop_id()
    route_to_route_id = await client.get_route_to_route_id()

    static_data = StaticData(
        station_to_stop_id=station_to_stop_id,
        route_to_route_id=route_to_route_id,
    )
    logger.info(
        "Static data resolved",
        num_stations=len(static_data.station_to_stop_id),
        num_routes=len(static_data.route_to_route_id),
    )
    return static_data
