from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse

from spade_bridge.deps import get_fedex_api
from spade_bridge.fedex_api import FedExApiClient, FedExApiError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fedex", tags=["fedex"])


@router.get("/track")
async def track_shipment(
    tracking_number: str | None = None,
    fedex_api: FedExApiClient = Depends(get_fedex_api),
):
    cleaned = (tracking_number or "").strip()
    if not cleaned:
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing tracking_number"},
        )

    try:
        return await fedex_api.track(tracking_number=cleaned)
    except FedExApiError as exc:
        logger.error("fedex.track_failed", extra={"tracking_number": cleaned, "error": str(exc)})
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Failed to fetch tracking info",
                "details": exc.details if exc.details is not None else str(exc),
            },
        )
