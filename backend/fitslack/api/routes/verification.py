"""
Slack Verification Routes

- GET /verify/{token} - Strava-linked verification (replays held events)
- POST /verify/slack/start - Standalone verification: DM a link
- GET /verify/slack/{token} - Standalone verification: consume the link
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from fitslack.api.deps import get_services, get_verification_service, read_body
from fitslack.api.pages import error_page, message_page
from fitslack.features.verification import VerificationService
from fitslack.services import Services
from fitslack.shared.formatters import format_athlete_name
from fitslack.shared.slack import PostError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/verify/{token}")
async def verify_strava(
    token: str,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
    verification: VerificationService = Depends(get_verification_service),
):
    """Consume a Strava-linked token; held runs are posted afterwards."""
    conn = await verification.complete_strava(token)

    background_tasks.add_task(services.webhook_handler.replay_pending, conn.athlete_id)

    name = format_athlete_name(conn.athlete_firstname, conn.athlete_lastname)
    return message_page(
        "✅ Verified!",
        [
            "Your Slack account is now verified. Your runs will be automatically "
            "posted to the channel.",
            f"Athlete: {name}",
            f"Slack ID: {conn.slack_user_id}",
            "You can close this tab and start running! 🏃",
        ],
    )


@router.post("/verify/slack/start")
async def verify_slack_start(
    request: Request,
    verification: VerificationService = Depends(get_verification_service),
):
    body = await read_body(request)

    try:
        result = await verification.start_standalone(body.get("slack_user_id"))
    except PostError as e:
        logger.error(f"Failed to send verification DM: {e}")
        return error_page(
            "Could not send a DM to that Slack ID. Please check the ID is correct "
            f"and that you can receive DMs from the bot. Error: {e.slack_error or e}",
            status_code=500,
            heading="Failed to send verification",
        )

    if result.already_verified:
        return message_page(
            "✅ Already Verified!",
            [
                "Your Slack account is already verified. "
                "You can now connect Strava or Peloton."
            ],
            back_label="Go back to connect services",
        )

    return message_page(
        "📬 Check Your Slack DMs!",
        [
            "We've sent a verification link to your Slack direct messages.",
            "Click the link in that message to verify your account, then come back "
            "here to connect Strava or Peloton.",
        ],
    )


@router.get("/verify/slack/{token}")
async def verify_slack_complete(
    token: str,
    verification: VerificationService = Depends(get_verification_service),
):
    user = await verification.complete_standalone(token)
    return message_page(
        "✅ Verified!",
        [
            f"Your Slack account {user.slack_user_id} is now verified.",
            "You can now connect Strava or Peloton to auto-post your workouts.",
        ],
        back_label="Connect your fitness services",
    )
