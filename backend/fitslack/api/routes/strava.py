"""
Strava OAuth Routes

Endpoints for Strava integration:
- /auth/strava/start - Initiate OAuth flow (Slack ID carried in state)
- /auth/strava/callback - Exchange code, store connection, DM verify link
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.api.deps import get_async_db, get_services
from fitslack.api.pages import error_page, message_page
from fitslack.features.strava import (
    StravaConnectionRepository,
    StravaOAuthError,
    decode_state,
    encode_state,
)
from fitslack.features.verification import (
    generate_verification_token,
    require_slack_user_id,
)
from fitslack.services import Services
from fitslack.shared.formatters import format_athlete_name
from fitslack.shared.slack import PostError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/auth/strava/start")
async def strava_auth_start(
    slack_user_id: Optional[str] = Query(default=None),
    services: Services = Depends(get_services),
):
    """Redirect to Strava's consent screen."""
    if not services.strava_oauth.configured:
        return error_page(
            "Strava integration is not configured (STRAVA_CLIENT_ID / STRAVA_CLIENT_SECRET).",
            status_code=400,
            heading="Strava not configured",
        )

    if slack_user_id:
        slack_user_id = require_slack_user_id(slack_user_id)

    auth_url = services.strava_oauth.get_authorization_url(
        redirect_uri=services.settings.strava_callback_url,
        state=encode_state(slack_user_id),
    )

    logger.info(f"Strava OAuth initiated for slack_user_id={slack_user_id}")
    return RedirectResponse(url=auth_url)


@router.get("/auth/strava/callback")
async def strava_auth_callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    services: Services = Depends(get_services),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Handle Strava OAuth callback.

    Stores the connection and, when a Slack ID came through the state,
    issues a verification token and DMs the verify link.
    """
    if error:
        logger.warning(f"Strava OAuth error: {error}")
        return error_page(
            f"Strava authorization was declined: {error}",
            status_code=400,
            heading="Authorization declined",
        )
    if not code:
        return error_page("Missing code", status_code=400, heading="Missing code")
    if not services.strava_oauth.configured:
        return error_page(
            "Strava integration is not configured.",
            status_code=400,
            heading="Strava not configured",
        )

    slack_user_id = decode_state(state)
    if slack_user_id:
        slack_user_id = require_slack_user_id(slack_user_id)

    token_data = await services.strava_oauth.exchange_code(
        code, redirect_uri=services.settings.strava_callback_url
    )
    athlete = token_data.get("athlete") or {}
    athlete_id = athlete.get("id")
    if not athlete_id or not token_data.get("refresh_token"):
        raise StravaOAuthError("Strava token exchange returned no athlete or refresh token")

    connections = StravaConnectionRepository(db)
    existing = await connections.get(athlete_id)

    # Linking a different Slack account must be verified again
    if (
        slack_user_id
        and existing
        and existing.slack_user_id
        and existing.slack_user_id != slack_user_id
    ):
        await connections.reset_verification(athlete_id)
        logger.info(
            f"Athlete {athlete_id} re-linked from {existing.slack_user_id} "
            f"to {slack_user_id}; verification reset"
        )

    verification_token = generate_verification_token() if slack_user_id else None

    await connections.upsert(
        athlete_id=athlete_id,
        refresh_token=token_data["refresh_token"],
        access_token=token_data.get("access_token"),
        expires_at=token_data.get("expires_at"),
        athlete_firstname=athlete.get("firstname"),
        athlete_lastname=athlete.get("lastname"),
        slack_user_id=slack_user_id,
        verification_token=verification_token,
    )
    await db.commit()
    logger.info(f"Strava connected: athlete_id={athlete_id}, slack_user_id={slack_user_id}")

    if slack_user_id and verification_token:
        try:
            await services.verification(db).send_strava_link(slack_user_id, verification_token)
            slack_msg = (
                "Check your Slack DMs! We've sent you a verification link "
                "to confirm your account."
            )
        except PostError as e:
            logger.error(f"Failed to send verification DM: {e}")
            slack_msg = "Connected, but failed to send verification DM. Please contact an admin."
    else:
        slack_msg = "Note: No Slack account linked. Visit the homepage to set up your Slack ID."

    name = format_athlete_name(athlete.get("firstname"), athlete.get("lastname"))
    return message_page(
        "Connected! ✅",
        [
            f"Athlete: {name} (id {athlete_id}).",
            slack_msg,
            "You can close this tab.",
        ],
    )
