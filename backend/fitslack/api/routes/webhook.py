"""
Strava Webhook Routes

- GET /strava/webhook - Subscription handshake
- POST /strava/webhook - Event delivery (acknowledged before processing)
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from fitslack.api.deps import get_services
from fitslack.services import Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/strava/webhook")
async def strava_webhook_handshake(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    services: Services = Depends(get_services),
):
    """Echo the challenge when the verify token matches."""
    expected = services.settings.strava_verify_token
    if mode == "subscribe" and expected and verify_token == expected:
        logger.info("Strava webhook subscription verified")
        return JSONResponse({"hub.challenge": challenge})

    logger.warning("Strava webhook handshake rejected")
    return PlainTextResponse("Verification failed", status_code=403)


@router.post("/strava/webhook")
async def strava_webhook_event(
    request: Request,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
):
    """
    Acknowledge immediately, process in the background.

    The response never depends on the processing outcome.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    logger.info(f"Received webhook event: {payload}")
    background_tasks.add_task(services.webhook_handler.receive, payload)

    return PlainTextResponse("EVENT_RECEIVED", status_code=200)
