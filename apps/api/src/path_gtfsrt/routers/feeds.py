"""GTFS-RT feed endpoints and the index page."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, Response

from path_gtfsrt.metrics import feed_requests_counter
from path_gtfsrt.services.feed import FEED_PORT_AUTHORITY_ALERTS, FEED_TRIP_UPDATES, FeedWorker

router = APIRouter(tags=["feeds"])

PROTOBUF_MEDIA_TYPE = "application/x-protobuf"

INDEX_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>PATH Train GTFS Realtime</title>
</head>
<body>
  <h1>PATH Train GTFS Realtime</h1>
  <p>GTFS Realtime feeds for the PATH train, refreshed continuously.</p>
  <ul>
    <li><a href="/gtfsrt">/gtfsrt</a>: trip updates (arrival predictions at every station)</li>
    <li><a href="/port_authority_alerts">/port_authority_alerts</a>:
      service alerts from the Port Authority incident feed, if enabled</li>
    <li><a href="/metrics">/metrics</a>: Prometheus metrics</li>
    <li><a href="/health">/health</a>: feed worker status</li>
  </ul>
</body>
</html>
"""


def _feed_response(worker: FeedWorker | None, feed: str) -> Response:
    if worker is None:
        feed_requests_counter.labels(feed=feed, code="404").inc()
        raise HTTPException(status_code=404, detail=f"Feed {feed} is not enabled")
    feed_requests_counter.labels(feed=feed, code="200").inc()
    return Response(content=worker.get(), media_type=PROTOBUF_MEDIA_TYPE)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> str:
    return INDEX_PAGE


@router.get("/gtfsrt", summary="GTFS-RT trip update feed")
async def trip_update_feed(request: Request) -> Response:
    """Latest trip update feed as a serialized FeedMessage."""
    worker = getattr(request.app.state, "trip_update_feed", None)
    return _feed_response(worker, FEED_TRIP_UPDATES)


@router.get("/port_authority_alerts", summary="GTFS-RT Port Authority alert feed")
async def port_authority_alert_feed(request: Request) -> Response:
    """Latest alert feed as a serialized FeedMessage."""
    worker = getattr(request.app.state, "port_authority_alert_feed", None)
    return _feed_response(worker, FEED_PORT_AUTHORITY_ALERTS)
