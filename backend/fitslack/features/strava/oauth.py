"""
Strava OAuth flow.

Handles:
- Authorization URL generation
- Code exchange for tokens
- Token refresh
- Opaque state encoding (carries the Slack user ID through the redirect)
"""

import base64
import json
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from .client import RefreshError, StravaOAuthError, is_error_response, parse_body

logger = logging.getLogger(__name__)


class StravaOAuth:
    """
    Strava OAuth handler.

    Usage:
        oauth = StravaOAuth(client_id, client_secret)
        auth_url = oauth.get_authorization_url(
            redirect_uri="https://example.com/auth/strava/callback",
            state=encode_state("U04HBADQP0B")
        )
        tokens = await oauth.exchange_code(code, redirect_uri)
        tokens = await oauth.refresh_token(refresh_token)
    """

    AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
    TOKEN_URL = "https://www.strava.com/oauth/token"

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_authorization_url(
        self,
        redirect_uri: str,
        state: Optional[str] = None,
        scope: str = "read,activity:read_all"
    ) -> str:
        """
        Generate Strava OAuth authorization URL.

        Args:
            redirect_uri: URL to redirect after authorization
            state: Opaque state echoed back to the callback
            scope: OAuth scope (private activities are posted too)

        Returns:
            Authorization URL string
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "approval_prompt": "auto",
            "scope": scope,
        }
        if state:
            params["state"] = state

        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def _token_request(self, payload: dict, error_cls: type[Exception]) -> dict:
        body = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **payload,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.TOKEN_URL, json=body)
        except httpx.TimeoutException as e:
            raise error_cls("Strava token endpoint timed out") from e
        except httpx.HTTPError as e:
            raise error_cls(f"Strava token request failed: {e}") from e

        data = parse_body(response)
        if is_error_response(response, data):
            raise error_cls(
                f"Strava token request failed: {response.status_code} {json.dumps(data)}"
            )
        return data

    async def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> dict:
        """
        Exchange authorization code for tokens.

        Returns:
            {
                "access_token": "...",
                "refresh_token": "...",
                "expires_at": 1234567890,
                "athlete": {"id": 123, "firstname": "...", ...}
            }

        Raises:
            StravaOAuthError: If token exchange fails
        """
        payload = {"code": code, "grant_type": "authorization_code"}
        if redirect_uri:
            payload["redirect_uri"] = redirect_uri
        data = await self._token_request(payload, StravaOAuthError)
        logger.info(
            f"Strava token exchange success for athlete: {data.get('athlete', {}).get('id')}"
        )
        return data

    async def refresh_token(self, refresh_token: str) -> dict:
        """
        Refresh an access token. Strava may rotate the refresh token.

        Returns:
            {
                "access_token": "...",
                "refresh_token": "...",
                "expires_at": 1234567890,
                "athlete": {...}  # sometimes present
            }

        Raises:
            RefreshError: If token refresh fails
        """
        return await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            RefreshError,
        )


# =============================================================================
# OAuth state
# =============================================================================

def encode_state(slack_user_id: Optional[str]) -> str:
    """Pack the Slack user ID into an opaque URL-safe state string."""
    if not slack_user_id:
        return ""
    raw = json.dumps({"slack_user_id": slack_user_id}).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_state(state: Optional[str]) -> Optional[str]:
    """
    Recover the Slack user ID from a state string.

    Accepts both the encoded form and plain JSON. Returns None when the
    state is empty or unreadable.
    """
    if not state:
        return None

    candidates = [state]
    try:
        padded = state + "=" * (-len(state) % 4)
        candidates.insert(0, base64.urlsafe_b64decode(padded).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        pass

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict) and data.get("slack_user_id"):
            return str(data["slack_user_id"])

    logger.warning("Failed to parse OAuth state parameter")
    return None
