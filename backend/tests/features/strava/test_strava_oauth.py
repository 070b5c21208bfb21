"""
Tests for the Strava OAuth flow and state encoding.
"""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from fitslack.features.strava import (
    RefreshError,
    StravaOAuth,
    StravaOAuthError,
    decode_state,
    encode_state,
)


def _oauth(handler) -> StravaOAuth:
    return StravaOAuth("12345", "strava-secret", transport=httpx.MockTransport(handler))


class TestState:
    """Tests for the opaque OAuth state."""

    def test_round_trip(self):
        state = encode_state("U04HBADQP0B")
        assert "U04HBADQP0B" not in state
        assert decode_state(state) == "U04HBADQP0B"

    def test_plain_json_accepted(self):
        assert decode_state('{"slack_user_id": "U04HBADQP0B"}') == "U04HBADQP0B"

    def test_empty(self):
        assert encode_state(None) == ""
        assert decode_state("") is None
        assert decode_state(None) is None

    def test_garbage(self):
        assert decode_state("not-a-state!") is None


class TestAuthorizationUrl:
    """Tests for the consent redirect URL."""

    def test_contains_params(self):
        oauth = StravaOAuth("12345", "strava-secret")
        url = oauth.get_authorization_url(
            "https://fit.example.com/auth/strava/callback", state="abc"
        )

        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert parsed.netloc == "www.strava.com"
        assert params["client_id"] == ["12345"]
        assert params["redirect_uri"] == ["https://fit.example.com/auth/strava/callback"]
        assert params["scope"] == ["read,activity:read_all"]
        assert params["state"] == ["abc"]

    def test_configured(self):
        assert StravaOAuth("12345", "secret").configured
        assert not StravaOAuth(None, "secret").configured


class TestTokenRequests:
    """Tests for code exchange and refresh."""

    @pytest.mark.asyncio
    async def test_refresh_sends_refresh_grant(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={
                "access_token": "access-2",
                "refresh_token": "refresh-2",
                "expires_at": 1700003600,
            })

        data = await _oauth(handler).refresh_token("refresh-1")

        assert data["access_token"] == "access-2"
        assert seen["grant_type"] == "refresh_token"
        assert seen["refresh_token"] == "refresh-1"
        assert seen["client_id"] == "12345"

    @pytest.mark.asyncio
    async def test_refresh_non_2xx(self):
        def handler(request):
            return httpx.Response(400, json={"message": "Bad Request"})

        with pytest.raises(RefreshError):
            await _oauth(handler).refresh_token("refresh-1")

    @pytest.mark.asyncio
    async def test_refresh_error_body(self):
        """A 200 with an errors list still fails."""
        def handler(request):
            return httpx.Response(200, json={"errors": [{"code": "invalid"}]})

        with pytest.raises(RefreshError):
            await _oauth(handler).refresh_token("refresh-1")

    @pytest.mark.asyncio
    async def test_refresh_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(RefreshError):
            await _oauth(handler).refresh_token("refresh-1")

    @pytest.mark.asyncio
    async def test_exchange_code(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["code"] == "the-code"
            assert body["grant_type"] == "authorization_code"
            return httpx.Response(200, json={
                "access_token": "access-1",
                "refresh_token": "refresh-1",
                "expires_at": 1700000000,
                "athlete": {"id": 42, "firstname": "Ada", "lastname": "Lovelace"},
            })

        data = await _oauth(handler).exchange_code("the-code")
        assert data["athlete"]["id"] == 42

    @pytest.mark.asyncio
    async def test_exchange_failure(self):
        def handler(request):
            return httpx.Response(401, json={"message": "Authorization Error"})

        with pytest.raises(StravaOAuthError):
            await _oauth(handler).exchange_code("bad-code")
