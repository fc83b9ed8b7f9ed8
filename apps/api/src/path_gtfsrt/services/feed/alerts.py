"""Build GTFS-RT alert entities from Port Authority incidents.

Everbridge incidents carry free-form "form variables". Three of them are
understood here:

* ``Station``: a Port Authority station code such as ``14S``. Becomes a
  stop selector.
* ``Lines``: one or more line codes such as ``HOB-33S``. Each becomes a
  route selector.
* ``Status``: free text such as ``"delayed."``. Matched against
  :data:`STATUS_EFFECTS` to set the alert effect.

An incident with neither ``Station`` nor ``Lines`` applies to the whole
agency.
"""

from __future__ import annotations

from typing import Sequence

from google.transit import gtfs_realtime_pb2

from path_gtfsrt.models import FormVariableItem, Incident, Route, StaticData, Station

PATH_AGENCY_ID = "151"
LANGUAGE = "en"

STATION_VARIABLE = "Station"
LINES_VARIABLE = "Lines"
STATUS_VARIABLE = "Status"

PORT_AUTHORITY_STATIONS = {
    "NWK": Station.NEWARK,
    "HAR": Station.HARRISON,
    "JSQ": Station.JOURNAL_SQUARE,
    "GRV": Station.GROVE_STREET,
    "EXP": Station.EXCHANGE_PLACE,
    "WTC": Station.WORLD_TRADE_CENTER,
    "NEW": Station.NEWPORT,
    "HOB": Station.HOBOKEN,
    "CHR": Station.CHRISTOPHER_STREET,
    "09S": Station.NINTH_STREET,
    "14S": Station.FOURTEENTH_STREET,
    "23S": Station.TWENTY_THIRD_STREET,
    "33S": Station.THIRTY_THIRD_STREET,
}

PORT_AUTHORITY_LINES = {
    "NWK-WTC": Route.NWK_WTC,
    "HOB-WTC": Route.HOB_WTC,
    "JSQ-33S": Route.JSQ_33,
    "HOB-33S": Route.HOB_33,
    "JSQ-HOB-33S": Route.JSQ_33_HOB,
}

# First match wins; keys are lower-case substrings of the Status value
STATUS_EFFECTS: list[tuple[str, int]] = [
    ("delay", gtfs_realtime_pb2.Alert.SIGNIFICANT_DELAYS),
    ("suspend", gtfs_realtime_pb2.Alert.NO_SERVICE),
    ("detour", gtfs_realtime_pb2.Alert.DETOUR),
    ("reduced", gtfs_realtime_pb2.Alert.REDUCED_SERVICE),
    ("modified", gtfs_realtime_pb2.Alert.MODIFIED_SERVICE),
]


def _translated(target: gtfs_realtime_pb2.TranslatedString, text: str) -> None:
    translation = target.translation.add()
    translation.text = text
    translation.language = LANGUAGE


def _first_items(items: Sequence[FormVariableItem]) -> dict[str, FormVariableItem]:
    by_name: dict[str, FormVariableItem] = {}
    for item in items:
        by_name.setdefault(item.variable_name, item)
    return by_name


def status_effect(values: Sequence[str]) -> int | None:
    """Map Status values to an alert effect, or None if nothing matches."""
    for value in values:
        lowered = value.lower()
        for needle, effect in STATUS_EFFECTS:
            if needle in lowered:
                return effect
    return None


def build_alert_entity(
    entity_id: str,
    incident: Incident,
    static_data: StaticData,
) -> gtfs_realtime_pb2.FeedEntity:
    entity = gtfs_realtime_pb2.FeedEntity()
    entity.id = entity_id
    alert = entity.alert

    _translated(alert.header_text, incident.subject)
    _translated(alert.description_text, incident.pre_message)

    items = _first_items(incident.form_variable_items)

    station_item = items.get(STATION_VARIABLE)
    if station_item is not None and station_item.val:
        station = PORT_AUTHORITY_STATIONS.get(station_item.val[0])
        stop_id = static_data.stop_id(station)
        if stop_id is not None:
            alert.informed_entity.add().stop_id = stop_id

    lines_item = items.get(LINES_VARIABLE)
    if lines_item is not None:
        for line in lines_item.val:
            route_id = static_data.route_id(PORT_AUTHORITY_LINES.get(line))
            if route_id is not None:
                alert.informed_entity.add().route_id = route_id

    if station_item is None and lines_item is None:
        alert.informed_entity.add().agency_id = PATH_AGENCY_ID

    status_item = items.get(STATUS_VARIABLE)
    if status_item is not None:
        effect = status_effect(status_item.val)
        if effect is not None:
            alert.effect = effect

    return entity


def build_alert_entities(
    static_data: StaticData,
    incidents: Sequence[Incident],
) -> list[gtfs_realtime_pb2.FeedEntity]:
    """One alert entity per incident, in incident order."""
    return [
        build_alert_entity(str(i + 1), incident, static_data)
        for i, incident in enumerate(incidents)
    ]
