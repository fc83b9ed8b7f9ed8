"""Upstream record types and the static identifier mapping."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Station(str, enum.Enum):
    """PATH stations as named by the source API, in line order."""

    NEWARK = "NEWARK"
    HARRISON = "HARRISON"
    JOURNAL_SQUARE = "JOURNAL_SQUARE"
    GROVE_STREET = "GROVE_STREET"
    EXCHANGE_PLACE = "EXCHANGE_PLACE"
    WORLD_TRADE_CENTER = "WORLD_TRADE_CENTER"
    NEWPORT = "NEWPORT"
    HOBOKEN = "HOBOKEN"
    CHRISTOPHER_STREET = "CHRISTOPHER_STREET"
    NINTH_STREET = "NINTH_STREET"
    FOURTEENTH_STREET = "FOURTEENTH_STREET"
    TWENTY_THIRD_STREET = "TWENTY_THIRD_STREET"
    THIRTY_THIRD_STREET = "THIRTY_THIRD_STREET"


class Route(str, enum.Enum):
    """PATH lines as named by the source API."""

    NWK_WTC = "NWK_WTC"
    HOB_WTC = "HOB_WTC"
    JSQ_33 = "JSQ_33"
    HOB_33 = "HOB_33"
    JSQ_33_HOB = "JSQ_33_HOB"


class Direction(str, enum.Enum):
    TO_NJ = "TO_NJ"
    TO_NY = "TO_NY"


# GTFS direction_id convention for the published feed
DIRECTION_ID = {
    Direction.TO_NJ: 0,
    Direction.TO_NY: 1,
}


def _enum_or_none(enum_cls: type[enum.Enum], value: Any) -> Any:
    """Read unspecified or unknown enum values from the wire as unset."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


class WireModel(BaseModel):
    """Base for camelCase JSON records from upstream sources.

    A JSON null reads as the field default, the same as an absent key.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Train(WireModel):
    """One upcoming train reported at one station.

    Every field is optional on the wire; a train missing any of them is
    incomplete and never published.
    """

    route: Optional[Route] = None
    direction: Optional[Direction] = None
    projected_arrival: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @field_validator("route", mode="before")
    @classmethod
    def _parse_route(cls, value: Any) -> Any:
        return _enum_or_none(Route, value)

    @field_validator("direction", mode="before")
    @classmethod
    def _parse_direction(cls, value: Any) -> Any:
        return _enum_or_none(Direction, value)

    @field_validator("projected_arrival", "last_updated")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Timestamps without an offset are UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_complete(self) -> bool:
        return (
            self.route is not None
            and self.direction is not None
            and self.projected_arrival is not None
            and self.last_updated is not None
        )


class FormVariableItem(WireModel):
    """A named Everbridge form variable attached to an incident."""

    variable_name: str = ""
    val: list[str] = Field(default_factory=list)

    @field_validator("val", mode="before")
    @classmethod
    def _drop_null_values(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if item is not None]
        return value


class Incident(WireModel):
    """One service incident from the Port Authority feed."""

    subject: str = ""
    pre_message: str = ""
    form_variable_items: list[FormVariableItem] = Field(default_factory=list)


@dataclass(frozen=True)
class StaticData:
    """Read-only mapping from source identifiers to published GTFS identifiers.

    Resolved once at startup and shared by every feed. A missing key means
    the identifier is unmapped; callers must skip it rather than invent one.
    """

    station_to_stop_id: Mapping[Station, str] = field(default_factory=dict)
    route_to_route_id: Mapping[Route, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "station_to_stop_id", MappingProxyType(dict(self.station_to_stop_id))
        )
        object.__setattr__(
            self, "route_to_route_id", MappingProxyType(dict(self.route_to_route_id))
        )

    @property
    def stations(self) -> list[Station]:
        """Mapped stations in line order."""
        return [station for station in Station if station in self.station_to_stop_id]

    def stop_id(self, station: Station | None) -> str | None:
        if station is None:
            return None
        return self.station_to_stop_id.get(station)

    def route_id(self, route: Route | None) -> str | None:
        if route is None:
            return None
        return self.route_to_route_id.get(route)
