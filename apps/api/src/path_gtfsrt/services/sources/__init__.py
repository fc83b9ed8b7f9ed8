"""Upstream data sources for the PATH feeds."""

from path_gtfsrt.services.sources.client import (
    HttpSourceClient,
    IncidentClient,
    SourceClient,
    SourceFetchError,
)
from path_gtfsrt.services.sources.port_authority import PortAuthorityClient
from path_gtfsrt.services.sources.static_data import get_static_data

__all__ = [
    "HttpSourceClient",
    "IncidentClient",
    "PortAuthorityClient",
    "SourceClient",
    "SourceFetchError",
    "get_static_data",
]
