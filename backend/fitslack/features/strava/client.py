"""
Strava API client.

Provides the activity endpoints used by the webhook pipeline.
Token handling lives in oauth.py.

Failure signals:
- FetchError: non-2xx response, error body, timeout or transport failure
- StravaAuthError: 401 (subclass of FetchError)
"""

import logging
from typing import Optional

import httpx

from fitslack.shared.exceptions import VendorError

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class StravaError(VendorError):
    """Base Strava error."""
    pass


class RefreshError(StravaError):
    """Token refresh rejected by Strava."""
    pass


class StravaOAuthError(StravaError):
    """Authorization code exchange failed."""
    pass


class FetchError(StravaError):
    """Activity fetch failed."""
    pass


class StravaAuthError(FetchError):
    """Access token invalid or expired."""
    pass


def parse_body(response: httpx.Response) -> dict:
    """Decode JSON body, keeping the raw text when it is not JSON."""
    try:
        data = response.json()
    except ValueError:
        return {"raw": response.text}
    if isinstance(data, dict):
        return data
    return {"data": data}


def is_error_response(response: httpx.Response, data: dict) -> bool:
    """Non-2xx status or a Strava-style {"errors": [...]} body."""
    return not response.is_success or bool(data.get("errors"))


# =============================================================================
# Strava Client
# =============================================================================

class StravaClient:
    """
    Async client for Strava API v3.

    Usage:
        client = StravaClient(timeout=10.0)
        activity = await client.get_activity(access_token, 777)
        recent = await client.get_activities(access_token, per_page=10)
    """

    API_URL = "https://www.strava.com/api/v3"

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout
        self._transport = transport

    async def _api_request(
        self,
        method: str,
        endpoint: str,
        access_token: str,
        params: Optional[dict] = None
    ) -> dict | list:
        """
        Make an authenticated API request.

        Raises:
            StravaAuthError: If authentication fails
            FetchError: If API returns error or the request fails
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=f"{self.API_URL}{endpoint}",
                    headers={"Authorization": f"Bearer {access_token}"},
                    params=params
                )
        except httpx.TimeoutException as e:
            raise FetchError(f"Strava timeout: {endpoint}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Strava request failed: {e}") from e

        # Log rate limit headers from Strava
        if "X-RateLimit-Limit" in response.headers:
            logger.debug(
                f"Strava rate limit: {response.headers.get('X-RateLimit-Usage')} "
                f"/ {response.headers.get('X-RateLimit-Limit')}"
            )

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}

        if response.status_code == 401:
            raise StravaAuthError("Invalid or expired token")
        if not response.is_success or (isinstance(data, dict) and data.get("errors")):
            raise FetchError(
                f"Strava API error: {response.status_code} - {data}"
            )

        return data

    async def get_activity(self, access_token: str, activity_id: int) -> dict:
        """
        Get detailed activity info.

        Returns:
            Activity dict (id, type, name, distance in meters, ...)
        """
        return await self._api_request(
            "GET",
            f"/activities/{activity_id}",
            access_token,
            params={"include_all_efforts": "false"}
        )

    async def get_activities(
        self,
        access_token: str,
        page: int = 1,
        per_page: int = 30
    ) -> list[dict]:
        """
        Get the athlete's recent activities, newest first.

        Args:
            access_token: Valid access token
            page: Page number (default 1)
            per_page: Results per page (max 200)
        """
        params = {"page": page, "per_page": min(per_page, 200)}
        data = await self._api_request(
            "GET",
            "/athlete/activities",
            access_token,
            params
        )
        return data if isinstance(data, list) else []
