"""
API Router

Combines all route modules. Paths are unprefixed because the callback and
webhook URLs are registered with the vendors.
"""

from fastapi import APIRouter

from fitslack.api.routes import admin, peloton, strava, verification, webhook

api_router = APIRouter()

api_router.include_router(webhook.router, tags=["Strava Webhook"])
api_router.include_router(strava.router, tags=["Strava"])
api_router.include_router(verification.router, tags=["Verification"])
api_router.include_router(peloton.router, tags=["Peloton"])
api_router.include_router(admin.router, tags=["Admin"])
