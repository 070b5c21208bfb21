"""
Peloton poller.

Peloton has no webhooks, so connected users are polled on a fixed
interval. Each cycle:
1. Loads every connection holding a session
2. Fetches the most recent workouts per connection
3. Skips workouts already posted or without distance
4. Posts the rest and records them in the dedupe set

A 401 anywhere for a connection stops that connection for the cycle and
DMs the owner a re-auth link. One connection failing never stops the
others, and a cycle never raises.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitslack.features.posting import ActivityPublisher
from fitslack.shared.slack import PostError, SlackClient
from .client import SessionExpiredError
from .models import PelotonConnection
from .provider import PelotonProvider
from .repository import PelotonConnectionRepository, PostedWorkoutRepository

logger = logging.getLogger(__name__)


def reauth_url(base_url: str, slack_user_id: Optional[str]) -> str:
    return f"{base_url.rstrip('/')}/auth/peloton/start?slack_user_id={slack_user_id or ''}"


@dataclass
class PollResult:
    """Counters for one connection."""
    posted: int = 0
    skipped: int = 0
    errors: int = 0
    session_expired: bool = False


@dataclass
class PollSummary:
    """Counters for one cycle."""
    connections: int = 0
    posted: int = 0
    skipped: int = 0
    errors: int = 0
    expired: int = 0

    def add(self, result: PollResult) -> None:
        self.connections += 1
        self.posted += result.posted
        self.skipped += result.skipped
        self.errors += result.errors
        if result.session_expired:
            self.expired += 1


class PelotonPoller:
    """
    Background polling loop.

    Call `start()` to begin polling, `stop()` to stop gracefully.
    A cycle that is due while the previous one is still running is skipped.

    Usage:
        poller = PelotonPoller(session_factory, provider, publisher, slack, base_url)
        await poller.start()
        # ... later ...
        await poller.stop()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        provider: PelotonProvider,
        publisher: ActivityPublisher,
        slack: SlackClient,
        base_url: str,
        interval_minutes: float = 5,
        workout_limit: int = 10,
    ):
        self.session_factory = session_factory
        self.provider = provider
        self.publisher = publisher
        self.slack = slack
        self.base_url = base_url
        self.interval_seconds = interval_minutes * 60
        self.workout_limit = workout_limit

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._cycles: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the polling loop. The first cycle runs immediately."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            f"Peloton poller started (every {self.interval_seconds / 60:g} minutes)"
        )

    async def stop(self):
        """Stop the polling loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        for cycle in list(self._cycles):
            cycle.cancel()
        if self._cycles:
            await asyncio.gather(*self._cycles, return_exceptions=True)
        logger.info("Peloton poller stopped")

    async def _run_loop(self):
        """Tick on a fixed schedule; cycles run as tasks so a slow one cannot shift it."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while self._running:
            cycle = asyncio.create_task(self.poll_once())
            self._cycles.add(cycle)
            cycle.add_done_callback(self._cycles.discard)

            next_tick += self.interval_seconds
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

    async def poll_once(self) -> Optional[PollSummary]:
        """
        Run one cycle.

        Returns:
            Cycle summary, or None if the cycle was skipped or failed
        """
        if self._lock.locked():
            logger.info("Previous Peloton poll still running. Skipping cycle.")
            return None

        async with self._lock:
            try:
                return await self._poll_all()
            except Exception:
                logger.exception("Peloton poll cycle error")
                return None

    async def _poll_all(self) -> PollSummary:
        logger.info("Starting Peloton poll cycle...")

        async with self.session_factory() as db:
            connections = await PelotonConnectionRepository(db).list_with_session()

        summary = PollSummary()
        if not connections:
            logger.info("No Peloton connections to poll")
            return summary

        for conn in connections:
            summary.add(await self.poll_connection(conn))

        logger.info(
            f"Peloton poll complete: posted={summary.posted}, skipped={summary.skipped}, "
            f"errors={summary.errors}, expired={summary.expired}"
        )
        return summary

    async def poll_connection(self, conn: PelotonConnection) -> PollResult:
        """Poll one connection. Never raises."""
        result = PollResult()

        try:
            workouts = await self.provider.fetch_recent_activities(conn, self.workout_limit)

            async with self.session_factory() as db:
                for summary in workouts:
                    workout_id = None
                    try:
                        workout_id = summary.get("id")
                        await self._process_workout(db, conn, workout_id, result)
                    except SessionExpiredError:
                        raise
                    except Exception:
                        logger.exception(f"Error processing workout {workout_id}")
                        result.errors += 1

        except SessionExpiredError:
            logger.info(f"Peloton session expired for {conn.slack_user_id}")
            result.session_expired = True
            result.errors += 1
            await self.notify_session_expired(conn)

        except Exception:
            logger.exception(f"Error polling Peloton user {conn.peloton_user_id}")
            result.errors += 1

        return result

    async def _process_workout(
        self,
        db: AsyncSession,
        conn: PelotonConnection,
        workout_id: Optional[str],
        result: PollResult
    ) -> None:
        posted = PostedWorkoutRepository(db)

        if not workout_id or await posted.was_posted(workout_id):
            result.skipped += 1
            return

        workout = await self.provider.fetch_activity_detail(conn, workout_id)
        workout.setdefault("id", workout_id)

        miles = self.provider.extract_distance(workout)
        if miles is None:
            result.skipped += 1
            return

        await self.publisher.publish(self.provider, conn, workout, miles)

        await posted.mark_posted(workout_id, conn.slack_user_id)
        await db.commit()
        result.posted += 1

        logger.info(f"Posted Peloton workout {workout_id} for {conn.slack_user_id}")

    async def notify_session_expired(self, conn: PelotonConnection) -> bool:
        """
        DM the owner a re-auth link. Delivery failures are logged only.

        Returns:
            True if the DM was sent
        """
        if not conn.slack_user_id:
            logger.warning(
                f"Peloton session expired for {conn.peloton_user_id} with no Slack link"
            )
            return False

        text = (
            "Your Peloton session has expired. Your workouts are no longer being "
            "posted automatically.\n\n"
            "Please re-authenticate to resume auto-posting:\n"
            f"{reauth_url(self.base_url, conn.slack_user_id)}"
        )
        try:
            await self.slack.post_message(conn.slack_user_id, text)
        except PostError as e:
            logger.error(f"Failed to send session expiry notification: {e}")
            return False

        logger.info(f"Sent session expiry notification to {conn.slack_user_id}")
        return True
