"""
Strava integration module.

Usage:
    from fitslack.features.strava import StravaOAuth, StravaClient
    from fitslack.features.strava import StravaWebhookHandler

Components:
- StravaOAuth: OAuth flow (auth URL, token exchange, refresh)
- StravaClient: API client (activity detail, recent activities)
- StravaProvider: FitnessProvider implementation
- StravaWebhookHandler: Push-event pipeline

Models:
- StravaConnection: Tokens + Slack link per athlete
- PostedActivity: Dedupe set
- PendingActivity: Events held until verification
"""

from .models import StravaConnection, PostedActivity, PendingActivity
from .client import (
    StravaClient,
    StravaError,
    StravaAuthError,
    StravaOAuthError,
    RefreshError,
    FetchError,
)
from .oauth import StravaOAuth, encode_state, decode_state
from .provider import StravaProvider
from .repository import (
    StravaConnectionRepository,
    PostedActivityRepository,
    PendingActivityRepository,
)
from .webhook import StravaWebhookHandler, StravaEvent, WebhookOutcome

__all__ = [
    # Models
    "StravaConnection",
    "PostedActivity",
    "PendingActivity",
    # Client
    "StravaClient",
    "StravaError",
    "StravaAuthError",
    "StravaOAuthError",
    "RefreshError",
    "FetchError",
    # OAuth
    "StravaOAuth",
    "encode_state",
    "decode_state",
    # Provider
    "StravaProvider",
    # Repositories
    "StravaConnectionRepository",
    "PostedActivityRepository",
    "PendingActivityRepository",
    # Webhook
    "StravaWebhookHandler",
    "StravaEvent",
    "WebhookOutcome",
]
