"""
Admin Routes

Protected by a bearer token (ADMIN_TOKEN); open when it is not set.
- GET /connections - Strava connections
- POST /connections/{athlete_id}/slack - Link a Slack user to an athlete
- GET /peloton/connections - Peloton connections
- DELETE /peloton/connections/{peloton_user_id} - Remove a Peloton connection
- POST /test/slack - DM a sample post to MY_SLACK_USER_ID
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.api.deps import get_async_db, get_services, require_admin
from fitslack.features.peloton import PelotonConnectionRepository
from fitslack.features.strava import StravaConnectionRepository
from fitslack.features.verification import require_slack_user_id
from fitslack.services import Services
from fitslack.shared.exceptions import NotFoundError
from fitslack.shared.formatters import format_distance_line, slack_mention
from fitslack.shared.slack import PostError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


# =============================================================================
# Schemas
# =============================================================================

class StravaConnectionOut(BaseModel):
    athlete_id: int
    athlete_firstname: Optional[str] = None
    athlete_lastname: Optional[str] = None
    slack_user_id: Optional[str] = None
    verified: bool = False
    updated_at: Optional[datetime] = None


class PelotonConnectionOut(BaseModel):
    peloton_user_id: str
    slack_user_id: Optional[str] = None
    username: Optional[str] = None
    updated_at: Optional[datetime] = None


class StravaConnectionList(BaseModel):
    ok: bool = True
    connections: list[StravaConnectionOut]


class PelotonConnectionList(BaseModel):
    ok: bool = True
    connections: list[PelotonConnectionOut]


class OkMessage(BaseModel):
    ok: bool = True
    message: str


class SlackTestResult(BaseModel):
    ok: bool = True
    ts: str
    message: str


class SlackLinkRequest(BaseModel):
    slack_user_id: Optional[str] = None


# =============================================================================
# Strava
# =============================================================================

@router.get("/connections", response_model=StravaConnectionList)
async def list_strava_connections(db: AsyncSession = Depends(get_async_db)):
    """Who has connected Strava (no tokens)."""
    rows = await StravaConnectionRepository(db).list_connections()
    return StravaConnectionList(connections=[StravaConnectionOut(**row) for row in rows])


@router.post("/connections/{athlete_id}/slack", response_model=OkMessage)
async def link_slack_user(
    athlete_id: int,
    request: SlackLinkRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Link a Slack user to a Strava athlete.

    Admin links are trusted: the verified flag is left as it is.
    """
    if not request.slack_user_id:
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "Missing slack_user_id in body"},
        )
    slack_user_id = require_slack_user_id(request.slack_user_id)

    connections = StravaConnectionRepository(db)
    conn = await connections.get(athlete_id)
    if not conn:
        raise NotFoundError("Athlete not found")

    await connections.upsert(
        athlete_id=athlete_id,
        refresh_token=conn.refresh_token,
        access_token=conn.access_token,
        expires_at=conn.expires_at,
        athlete_firstname=conn.athlete_firstname,
        athlete_lastname=conn.athlete_lastname,
        slack_user_id=slack_user_id,
    )
    await db.commit()

    logger.info(f"Admin linked athlete {athlete_id} to Slack {slack_user_id}")
    return OkMessage(message="Slack user ID updated")


# =============================================================================
# Peloton
# =============================================================================

@router.get("/peloton/connections", response_model=PelotonConnectionList)
async def list_peloton_connections(db: AsyncSession = Depends(get_async_db)):
    """Who has connected Peloton (no session IDs)."""
    rows = await PelotonConnectionRepository(db).list_connections()
    return PelotonConnectionList(connections=[PelotonConnectionOut(**row) for row in rows])


@router.delete("/peloton/connections/{peloton_user_id}", response_model=OkMessage)
async def delete_peloton_connection(
    peloton_user_id: str,
    db: AsyncSession = Depends(get_async_db),
):
    deleted = await PelotonConnectionRepository(db).delete_connection(peloton_user_id)
    if not deleted:
        raise NotFoundError("Peloton connection not found")
    await db.commit()

    logger.info(f"Admin deleted Peloton connection {peloton_user_id}")
    return OkMessage(message="Connection deleted")


# =============================================================================
# Slack smoke test
# =============================================================================

@router.post("/test/slack", response_model=SlackTestResult)
async def send_slack_test_post(services: Services = Depends(get_services)):
    """DM a sample workout post to MY_SLACK_USER_ID."""
    settings = services.settings
    if not settings.slack_bot_token or not settings.my_slack_user_id:
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "Missing SLACK_BOT_TOKEN or MY_SLACK_USER_ID"},
        )

    text = (
        f"{format_distance_line(3.45, pedometer_user_id=settings.fetch_pedometer_user_id)}\n"
        f"{slack_mention(settings.my_slack_user_id)}: Test Run\n"
        f"https://www.strava.com/activities/12345678"
    )
    try:
        ts = await services.slack.post_message(settings.my_slack_user_id, text)
    except PostError as e:
        logger.error(f"Slack test post failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "slack_error": e.slack_error},
        )

    return SlackTestResult(ts=ts, message="Test post sent to your DM")
