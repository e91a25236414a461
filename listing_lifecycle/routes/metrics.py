"""
Prometheus scrape endpoint.

Example:
    GET /metrics

    Response:
        # HELP listing_operations_total Total listing lifecycle operations by outcome
        # TYPE listing_operations_total counter
        listing_operations_total{operation="create",outcome="success",variant="car"} 12.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Expose lifecycle, asset upload and sweep metrics in Prometheus text format.

    Returns:
        Response: Metrics with the Prometheus exposition Content-Type
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
