from __future__ import annotations

from typing import Any, Optional

import httpx

from spade_bridge.config import settings


class FedExApiError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 502, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class FedExApiClient:
    """Client-credentials FedEx client; sandbox vs production comes from settings."""

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self._timeout = timeout or settings.FEDEX_REQUEST_TIMEOUT_SECONDS

    async def track(self, *, tracking_number: str) -> dict[str, Any]:
        access_token = await self._fetch_access_token()
        payload = {
            "trackingInfo": [
                {
                    "trackingNumberInfo": {
                        "trackingNumber": tracking_number,
                    },
                }
            ],
            "includeDetailedScans": True,
        }
        return await self._send(
            method="POST",
            url=f"{settings.fedex_base_url}/track/v1/trackingnumbers",
            json=payload,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
        )

    async def _fetch_access_token(self) -> str:
        client_id, client_secret = settings.fedex_credentials
        if not client_id or not client_secret:
            raise FedExApiError(message="FedEx API credentials are not configured", status_code=500)
        body = await self._send(
            method="POST",
            url=f"{settings.fedex_base_url}/oauth/token",
            data={
                "grant_type": "client_credentials",
                "client_id": client_id,
                "client_secret": client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        access_token = body.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise FedExApiError(message="FedEx token response is missing access_token", details=body)
        return access_token

    async def _send(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        json: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, json=json, data=data, headers=headers)
        except httpx.RequestError as exc:
            raise FedExApiError(message=f"Network error while calling FedEx: {exc}") from exc

        if response.status_code >= 400:
            try:
                details: Any = response.json()
            except ValueError:
                details = response.text
            raise FedExApiError(
                message=f"FedEx API call failed ({response.status_code})",
                details=details,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise FedExApiError(message="FedEx API returned invalid JSON", details=response.text) from exc
        if not isinstance(body, dict):
            raise FedExApiError(message="FedEx API response must be a JSON object", details=body)
        return body
