"""
Prometheus scrape endpoint.

Serves the console's counters (HTTP traffic, logins, route-guard decisions,
records hidden by branch scoping). Plain text exposition by default;
OpenMetrics when the scraper asks for it. Kept out of the OpenAPI schema.
"""

from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from prometheus_client.openmetrics import exposition as openmetrics

router = APIRouter(tags=["metrics"], include_in_schema=False)

OPENMETRICS_MEDIA_TYPE = "application/openmetrics-text"


@router.get("/metrics")
async def scrape(request: Request):
    if OPENMETRICS_MEDIA_TYPE in request.headers.get("accept", ""):
        return Response(
            content=openmetrics.generate_latest(REGISTRY),
            media_type=openmetrics.CONTENT_TYPE_LATEST,
        )
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
