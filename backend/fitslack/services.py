"""
Service container.

Everything the HTTP layer and background tasks need is built once here
from Settings and passed explicitly. Tests build their own container
with fakes.
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitslack.config import Settings
from fitslack.features.peloton import (
    PelotonApiLogin,
    PelotonAuthenticator,
    PelotonClient,
    PelotonPoller,
    PelotonProvider,
)
from fitslack.features.posting import ActivityPublisher
from fitslack.features.strava import (
    StravaClient,
    StravaOAuth,
    StravaProvider,
    StravaWebhookHandler,
)
from fitslack.features.verification import VerificationService
from fitslack.shared.slack import SlackClient


@dataclass
class Services:
    """Wired application services."""

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    slack: SlackClient
    strava_oauth: StravaOAuth
    strava_client: StravaClient
    strava_provider: StravaProvider
    peloton_auth: PelotonAuthenticator
    peloton_client: PelotonClient
    peloton_provider: PelotonProvider
    publisher: ActivityPublisher
    webhook_handler: StravaWebhookHandler
    poller: PelotonPoller

    def verification(self, db: AsyncSession) -> VerificationService:
        """Verification service bound to a request session."""
        return VerificationService(db, self.slack, self.settings.base_url)


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    """
    Build the container.

    Args:
        settings: Application settings
        session_factory: Async session factory
        transport: Optional httpx transport shared by every vendor client
    """
    timeout = settings.http_timeout_seconds

    slack = SlackClient(settings.slack_bot_token, timeout=timeout, transport=transport)
    publisher = ActivityPublisher(
        slack,
        channel_id=settings.slack_channel_id,
        pedometer_user_id=settings.fetch_pedometer_user_id,
    )

    strava_oauth = StravaOAuth(
        settings.strava_client_id,
        settings.strava_client_secret,
        timeout=timeout,
        transport=transport,
    )
    strava_client = StravaClient(timeout=timeout, transport=transport)
    strava_provider = StravaProvider(strava_client)
    webhook_handler = StravaWebhookHandler(
        session_factory, strava_oauth, strava_provider, publisher
    )

    peloton_auth = PelotonApiLogin(timeout=timeout, transport=transport)
    peloton_client = PelotonClient(peloton_auth, timeout=timeout, transport=transport)
    peloton_provider = PelotonProvider(peloton_client)
    poller = PelotonPoller(
        session_factory,
        peloton_provider,
        publisher,
        slack,
        base_url=settings.base_url,
        interval_minutes=settings.peloton_poll_interval_minutes,
        workout_limit=settings.peloton_workout_limit,
    )

    return Services(
        settings=settings,
        session_factory=session_factory,
        slack=slack,
        strava_oauth=strava_oauth,
        strava_client=strava_client,
        strava_provider=strava_provider,
        peloton_auth=peloton_auth,
        peloton_client=peloton_client,
        peloton_provider=peloton_provider,
        publisher=publisher,
        webhook_handler=webhook_handler,
        poller=poller,
    )
