"""
Strava webhook pipeline.

Processes push-subscription events after the HTTP layer has already
acknowledged them.

Event flow:
1. Only "activity" + "create" events are considered
2. Activities already posted are skipped (dedupe set)
3. Unknown athletes are skipped
4. Athletes linked to Slack but not verified: event is held
5. Token refresh, persisted immediately
6. Activity fetch; only runs are posted
7. Slack post, then the dedupe record
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitslack.features.posting import ActivityPublisher
from .oauth import StravaOAuth
from .provider import StravaProvider
from .repository import (
    PendingActivityRepository,
    PostedActivityRepository,
    StravaConnectionRepository,
)

logger = logging.getLogger(__name__)


class WebhookOutcome(str, Enum):
    """Terminal state of one webhook event."""
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    UNKNOWN_OWNER = "unknown_owner"
    HELD = "held"
    NOT_POSTABLE = "not_postable"
    POSTED = "posted"
    FAILED = "failed"


# Outcomes that take a held event out of the pending set. HELD and FAILED
# stay pending so the event can be replayed later.
RELEASED_OUTCOMES = frozenset({
    WebhookOutcome.IGNORED,
    WebhookOutcome.DUPLICATE,
    WebhookOutcome.UNKNOWN_OWNER,
    WebhookOutcome.NOT_POSTABLE,
    WebhookOutcome.POSTED,
})


@dataclass(frozen=True)
class StravaEvent:
    """Strava push-subscription envelope."""

    object_type: Optional[str]
    aspect_type: Optional[str]
    object_id: Optional[int]
    owner_id: Optional[int]

    @classmethod
    def from_payload(cls, payload: Any) -> "StravaEvent":
        if not isinstance(payload, dict):
            return cls(None, None, None, None)
        return cls(
            object_type=payload.get("object_type"),
            aspect_type=payload.get("aspect_type"),
            object_id=_to_int(payload.get("object_id")),
            owner_id=_to_int(payload.get("owner_id")),
        )

    @property
    def is_new_activity(self) -> bool:
        return (
            self.object_type == "activity"
            and self.aspect_type == "create"
            and self.object_id is not None
            and self.owner_id is not None
        )


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class StravaWebhookHandler:
    """
    Runs the per-event state machine.

    Usage:
        handler = StravaWebhookHandler(session_factory, oauth, provider, publisher)
        outcome = await handler.receive(event_payload)  # never raises
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        oauth: StravaOAuth,
        provider: StravaProvider,
        publisher: ActivityPublisher
    ):
        self.session_factory = session_factory
        self.oauth = oauth
        self.provider = provider
        self.publisher = publisher

    async def receive(self, payload: Any) -> WebhookOutcome:
        """
        Entry point for webhook deliveries.

        After a successful post, runs still pending for the same athlete
        (held, or failed on an earlier replay) are retried.
        """
        outcome = await self.process(payload)
        if outcome == WebhookOutcome.POSTED:
            await self.replay_pending(StravaEvent.from_payload(payload).owner_id)
        return outcome

    async def process(self, payload: Any) -> WebhookOutcome:
        """
        Process an event, swallowing and logging every failure.

        Returns:
            Terminal outcome of the event
        """
        try:
            outcome = await self.handle(StravaEvent.from_payload(payload))
        except Exception:
            logger.exception(f"Webhook processing error: {payload}")
            return WebhookOutcome.FAILED

        logger.info(f"Webhook event finished: outcome={outcome.value}")
        return outcome

    async def handle(self, event: StravaEvent) -> WebhookOutcome:
        """Run the pipeline for one event. Vendor and DB errors propagate."""
        if not event.is_new_activity:
            return WebhookOutcome.IGNORED

        activity_id = event.object_id
        athlete_id = event.owner_id

        async with self.session_factory() as db:
            connections = StravaConnectionRepository(db)
            posted = PostedActivityRepository(db)

            if await posted.was_posted(activity_id):
                logger.info(f"Already posted activity: {activity_id}")
                return WebhookOutcome.DUPLICATE

            conn = await connections.get(athlete_id)
            if not conn:
                logger.info(f"No connection found for athlete_id={athlete_id}. Skipping.")
                return WebhookOutcome.UNKNOWN_OWNER

            if conn.awaiting_verification:
                await PendingActivityRepository(db).hold(activity_id, athlete_id)
                await db.commit()
                logger.info(
                    f"Athlete {athlete_id} has not verified Slack yet. "
                    f"Holding activity {activity_id}."
                )
                return WebhookOutcome.HELD

            # Strava may rotate the refresh token; persist before anything else
            refreshed = await self.oauth.refresh_token(conn.refresh_token)
            athlete = refreshed.get("athlete") or {}
            await connections.upsert(
                athlete_id=athlete_id,
                refresh_token=refreshed.get("refresh_token") or conn.refresh_token,
                access_token=refreshed.get("access_token"),
                expires_at=refreshed.get("expires_at"),
                athlete_firstname=athlete.get("firstname") or conn.athlete_firstname,
                athlete_lastname=athlete.get("lastname") or conn.athlete_lastname,
            )
            await db.commit()
            conn = await connections.get(athlete_id)

            activity = await self.provider.fetch_activity_detail(conn, activity_id)
            activity.setdefault("id", activity_id)
            logger.info(
                f"Fetched activity: id={activity.get('id')} type={activity.get('type')} "
                f"distance={activity.get('distance')}"
            )

            if not self.provider.is_postable(activity):
                logger.info(f"Not a Run. Skipping. type={activity.get('type')}")
                return WebhookOutcome.NOT_POSTABLE

            miles = self.provider.extract_distance(activity) or 0.0
            await self.publisher.publish(self.provider, conn, activity, miles)

            await posted.mark_posted(activity_id, athlete_id)
            await db.commit()

        logger.info(f"Posted run activity {activity_id} for athlete {athlete_id}")
        return WebhookOutcome.POSTED

    async def replay_pending(self, athlete_id: int) -> dict[int, WebhookOutcome]:
        """
        Re-run pending events for an athlete.

        Called after Slack verification and after any later post for the
        athlete succeeds. An event leaves the pending set only on an outcome
        in RELEASED_OUTCOMES; held or failed events wait for the next replay.

        Returns:
            Outcome per activity ID
        """
        async with self.session_factory() as db:
            activity_ids = await PendingActivityRepository(db).list_for_athlete(athlete_id)

        outcomes: dict[int, WebhookOutcome] = {}
        for activity_id in activity_ids:
            outcome = await self.process({
                "object_type": "activity",
                "aspect_type": "create",
                "object_id": activity_id,
                "owner_id": athlete_id,
            })
            outcomes[activity_id] = outcome

            if outcome in RELEASED_OUTCOMES:
                async with self.session_factory() as db:
                    await PendingActivityRepository(db).release(activity_id)
                    await db.commit()

        if activity_ids:
            logger.info(f"Replayed {len(activity_ids)} held activities for athlete {athlete_id}")
        return outcomes
