"""
Peloton Connection Routes

- GET /auth/peloton/start - Login form (verified Slack users only)
- POST /auth/peloton/login - Log in, store session (password is never stored)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.api.deps import get_async_db, get_services, read_body
from fitslack.api.pages import error_page, message_page, peloton_login_page
from fitslack.features.peloton import LoginError, PelotonConnectionRepository
from fitslack.features.verification import VerifiedSlackUserRepository, require_slack_user_id
from fitslack.services import Services
from fitslack.shared.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

router = APIRouter()


def peloton_username(username: str) -> str:
    """Local part of an e-mail, otherwise the username as given."""
    return username.split("@", 1)[0] if "@" in username else username


async def _require_verified(db: AsyncSession, slack_user_id: str) -> None:
    if not await VerifiedSlackUserRepository(db).is_verified(slack_user_id):
        raise AuthorizationError(
            "You must verify your Slack account before connecting Peloton. "
            "Please go to the homepage and complete Step 1 first."
        )


@router.get("/auth/peloton/start")
async def peloton_start(
    slack_user_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_async_db),
):
    if not slack_user_id:
        return error_page(
            "Please start from the homepage to connect Peloton.",
            status_code=400,
            heading="Missing Slack ID",
        )

    slack_user_id = require_slack_user_id(slack_user_id)
    await _require_verified(db, slack_user_id)

    return peloton_login_page(slack_user_id)


@router.post("/auth/peloton/login")
async def peloton_login(
    request: Request,
    services: Services = Depends(get_services),
    db: AsyncSession = Depends(get_async_db),
):
    body = await read_body(request)
    slack_user_id = (body.get("slack_user_id") or "").strip()
    username = (body.get("username") or "").strip()
    password = body.get("password") or ""

    if not slack_user_id or not username or not password:
        return error_page(
            "Please fill in all fields.",
            status_code=400,
            heading="Missing Fields",
            back_href=f"/auth/peloton/start?slack_user_id={slack_user_id}",
        )

    slack_user_id = require_slack_user_id(slack_user_id)
    await _require_verified(db, slack_user_id)

    try:
        session = await services.peloton_client.login(username, password)
    except LoginError as e:
        logger.warning(f"Peloton login failed for slack_user_id={slack_user_id}: {e}")
        return message_page(
            "Peloton Login Failed",
            [str(e), "Please check your username and password."],
            status_code=400,
            back_href=f"/auth/peloton/start?slack_user_id={slack_user_id}",
            back_label="Try again",
        )

    await PelotonConnectionRepository(db).upsert(
        peloton_user_id=session.user_id,
        session_id=session.session_id,
        username=peloton_username(username),
        slack_user_id=slack_user_id,
    )
    await db.commit()

    logger.info(f"Peloton connected: user_id={session.user_id}, slack_user_id={slack_user_id}")

    return message_page(
        "✅ Peloton Connected!",
        [
            "Your Peloton account is now linked. Your workouts with distance "
            "(running, cycling, walking) will be automatically posted to Slack.",
            f"Peloton User ID: {session.user_id}",
            f"Slack ID: {slack_user_id}",
        ],
    )
