"""Build GTFS-RT trip update entities from upcoming trains."""

from __future__ import annotations

from typing import Mapping, Sequence

from google.transit import gtfs_realtime_pb2

from path_gtfsrt.models import DIRECTION_ID, StaticData, Station, Train


def build_trip_update_entity(
    entity_id: str,
    route_id: str,
    direction_id: int,
    stop_id: str,
    arrival: int,
    last_updated: int,
) -> gtfs_realtime_pb2.FeedEntity:
    entity = gtfs_realtime_pb2.FeedEntity()
    entity.id = entity_id

    trip_update = entity.trip_update
    trip_update.trip.route_id = route_id
    trip_update.trip.direction_id = direction_id
    trip_update.timestamp = last_updated

    stop_time_update = trip_update.stop_time_update.add()
    stop_time_update.stop_id = stop_id
    stop_time_update.arrival.time = arrival
    return entity


def build_trip_update_entities(
    static_data: StaticData,
    trains_by_station: Mapping[Station, Sequence[Train]],
) -> list[gtfs_realtime_pb2.FeedEntity]:
    """Convert each complete, mapped train into one trip update entity.

    Stations are visited in line order and trains in upstream order.
    Incomplete trains and trains whose station or route has no published
    identifier are skipped.
    """
    entities: list[gtfs_realtime_pb2.FeedEntity] = []

    for station in Station:
        trains = trains_by_station.get(station)
        if not trains:
            continue
        stop_id = static_data.stop_id(station)
        if stop_id is None:
            continue

        for train in trains:
            if not train.is_complete:
                continue
            route_id = static_data.route_id(train.route)
            if route_id is None:
                continue

            entities.append(
                build_trip_update_entity(
                    entity_id=str(len(entities) + 1),
                    route_id=route_id,
                    direction_id=DIRECTION_ID[train.direction],
                    stop_id=stop_id,
                    arrival=int(train.projected_arrival.timestamp()),
                    last_updated=int(train.last_updated.timestamp()),
                )
            )

    return entities
