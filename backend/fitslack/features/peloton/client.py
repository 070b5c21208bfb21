"""
Peloton API client.

Peloton has no public API; this uses the same endpoints as the web app,
authenticated with the `peloton_session_id` cookie.

Failure signals:
- LoginError: credentials rejected or no session returned
- SessionExpiredError: 401 on any session-authenticated call
- PelotonFetchError: any other non-2xx, timeout or transport failure
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from fitslack.shared.exceptions import VendorError

logger = logging.getLogger(__name__)

API_URL = "https://api.onepeloton.com"


# =============================================================================
# Exceptions
# =============================================================================

class PelotonError(VendorError):
    """Base Peloton error."""
    pass


class LoginError(PelotonError):
    """Login rejected."""
    pass


class SessionExpiredError(PelotonError):
    """Stored session no longer accepted."""
    pass


class PelotonFetchError(PelotonError):
    """Workout request failed for a reason other than session expiry."""
    pass


def _response_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {response.status_code}"


# =============================================================================
# Login capability
# =============================================================================

@dataclass(frozen=True)
class PelotonSession:
    """Session credential returned by a successful login."""
    session_id: str
    user_id: str


class PelotonAuthenticator(ABC):
    """
    Exchanges username/password for a session.

    Pluggable so the direct-API login can be swapped for another
    strategy (e.g. browser automation) without touching callers.
    """

    @abstractmethod
    async def login(self, username: str, password: str) -> PelotonSession:
        """
        Raises:
            LoginError: Credentials rejected or no session returned
        """
        ...


class PelotonApiLogin(PelotonAuthenticator):
    """Direct JSON login against /auth/login."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout
        self._transport = transport

    async def login(self, username: str, password: str) -> PelotonSession:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{API_URL}/auth/login",
                    json={"username_or_email": username, "password": password},
                )
        except httpx.HTTPError as e:
            raise LoginError(f"Peloton login request failed: {e}") from e

        if not response.is_success:
            raise LoginError(f"Peloton login failed: {_response_message(response)}")

        try:
            data = response.json()
        except ValueError as e:
            raise LoginError("Peloton login returned an invalid response") from e

        session_id = data.get("session_id") if isinstance(data, dict) else None
        user_id = data.get("user_id") if isinstance(data, dict) else None
        if not session_id or not user_id:
            raise LoginError("Peloton login did not return a session")

        return PelotonSession(session_id=session_id, user_id=str(user_id))


# =============================================================================
# Peloton Client
# =============================================================================

class PelotonClient:
    """
    Async client for the Peloton web API.

    Usage:
        client = PelotonClient(PelotonApiLogin())
        session = await client.login("rider@example.com", "secret")
        workouts = await client.list_workouts(session.session_id, session.user_id)
    """

    def __init__(
        self,
        authenticator: PelotonAuthenticator,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.authenticator = authenticator
        self.timeout = timeout
        self._transport = transport

    async def login(self, username: str, password: str) -> PelotonSession:
        return await self.authenticator.login(username, password)

    async def _get(
        self,
        endpoint: str,
        session_id: str,
        params: Optional[dict] = None
    ) -> dict:
        """
        Make a session-authenticated GET.

        Raises:
            SessionExpiredError: 401
            PelotonFetchError: Any other failure
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{API_URL}{endpoint}",
                    headers={"Cookie": f"peloton_session_id={session_id}"},
                    params=params,
                )
        except httpx.TimeoutException as e:
            raise PelotonFetchError(f"Peloton timeout: {endpoint}") from e
        except httpx.HTTPError as e:
            raise PelotonFetchError(f"Peloton request failed: {e}") from e

        if response.status_code == 401:
            raise SessionExpiredError("Peloton session expired")
        if not response.is_success:
            raise PelotonFetchError(
                f"Peloton API error: {response.status_code} - {_response_message(response)}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PelotonFetchError(f"Peloton returned non-JSON for {endpoint}") from e

        return data if isinstance(data, dict) else {"data": data}

    async def list_workouts(
        self,
        session_id: str,
        user_id: str,
        limit: int = 10
    ) -> list[dict]:
        """Most recent workouts, newest first (first page only)."""
        data = await self._get(
            f"/api/user/{user_id}/workouts",
            session_id,
            params={"limit": limit, "page": 0},
        )
        workouts = data.get("data")
        return workouts if isinstance(workouts, list) else []

    async def get_workout_detail(self, session_id: str, workout_id: str) -> dict:
        return await self._get(f"/api/workout/{workout_id}", session_id)
