"""
Tests for the Strava API client and provider.
"""

from types import SimpleNamespace

import httpx
import pytest

from fitslack.features.strava import FetchError, StravaAuthError, StravaClient, StravaProvider


def _client(handler) -> StravaClient:
    return StravaClient(transport=httpx.MockTransport(handler))


class TestGetActivity:
    """Tests for StravaClient.get_activity."""

    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v3/activities/777"
            assert request.headers["Authorization"] == "Bearer access-1"
            return httpx.Response(200, json={"id": 777, "type": "Run", "distance": 5000})

        activity = await _client(handler).get_activity("access-1", 777)
        assert activity["type"] == "Run"

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        def handler(request):
            return httpx.Response(401, json={"message": "Authorization Error"})

        with pytest.raises(StravaAuthError):
            await _client(handler).get_activity("expired", 777)

    @pytest.mark.asyncio
    async def test_not_found(self):
        def handler(request):
            return httpx.Response(404, json={"message": "Record Not Found"})

        with pytest.raises(FetchError):
            await _client(handler).get_activity("access-1", 777)

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(FetchError):
            await _client(handler).get_activity("access-1", 777)


class TestGetActivities:
    """Tests for StravaClient.get_activities."""

    @pytest.mark.asyncio
    async def test_lists_recent(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"id": 2}, {"id": 1}])

        activities = await _client(handler).get_activities("access-1", per_page=5)

        assert [a["id"] for a in activities] == [2, 1]
        assert seen["path"] == "/api/v3/athlete/activities"
        assert seen["params"] == {"page": "1", "per_page": "5"}

    @pytest.mark.asyncio
    async def test_per_page_capped(self):
        seen = {}

        def handler(request):
            seen["per_page"] = request.url.params["per_page"]
            return httpx.Response(200, json=[])

        await _client(handler).get_activities("access-1", per_page=500)
        assert seen["per_page"] == "200"

    @pytest.mark.asyncio
    async def test_non_list_body_is_empty(self):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        assert await _client(handler).get_activities("access-1") == []

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        def handler(request):
            return httpx.Response(401, json={"message": "Authorization Error"})

        with pytest.raises(StravaAuthError):
            await _client(handler).get_activities("expired")


class TestStravaProvider:
    """Tests for the Strava provider capability."""

    def setup_method(self):
        self.provider = StravaProvider(StravaClient())

    def test_extract_distance_miles(self):
        assert self.provider.extract_distance({"distance": 5000}) == pytest.approx(3.10686, rel=1e-4)

    def test_extract_distance_missing(self):
        assert self.provider.extract_distance({}) is None
        assert self.provider.extract_distance({"distance": 0}) is None

    def test_only_runs_postable(self):
        assert self.provider.is_postable({"type": "Run"})
        assert not self.provider.is_postable({"type": "Ride"})
        assert not self.provider.is_postable({})

    def test_post_url(self):
        url = self.provider.build_post_url(None, {"id": 777})
        assert url == "https://www.strava.com/activities/777"

    def test_display_name(self):
        linked = SimpleNamespace(slack_user_id="U04HBADQP0B", athlete_firstname="Ada", athlete_lastname="L")
        unlinked = SimpleNamespace(slack_user_id=None, athlete_firstname="Ada", athlete_lastname="Lovelace")

        assert self.provider.display_name(linked) == "<@U04HBADQP0B>"
        assert self.provider.display_name(unlinked) == "*Ada Lovelace*"

    def test_title_fallback(self):
        assert self.provider.activity_title({"name": "Morning Run"}) == "Morning Run"
        assert self.provider.activity_title({}) == "New Run"

    @pytest.mark.asyncio
    async def test_fetch_detail_uses_access_token(self):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer access-9"
            return httpx.Response(200, json={"id": 777, "type": "Run"})

        provider = StravaProvider(_client(handler))
        conn = SimpleNamespace(access_token="access-9")

        detail = await provider.fetch_activity_detail(conn, 777)
        assert detail["id"] == 777

    @pytest.mark.asyncio
    async def test_fetch_recent_passes_limit(self):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer access-9"
            assert request.url.params["per_page"] == "3"
            return httpx.Response(200, json=[{"id": 3}, {"id": 2}, {"id": 1}])

        provider = StravaProvider(_client(handler))
        conn = SimpleNamespace(access_token="access-9")

        recent = await provider.fetch_recent_activities(conn, 3)
        assert [a["id"] for a in recent] == [3, 2, 1]
