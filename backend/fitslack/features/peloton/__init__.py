"""
Peloton integration module.

Usage:
    from fitslack.features.peloton import PelotonClient, PelotonApiLogin
    from fitslack.features.peloton import PelotonPoller

Components:
- PelotonAuthenticator / PelotonApiLogin: username+password -> session
- PelotonClient: workout list and detail
- PelotonProvider: FitnessProvider implementation
- PelotonPoller: periodic polling loop

Models:
- PelotonConnection: Session + Slack link per Peloton user
- PostedWorkout: Dedupe set
"""

from .models import PelotonConnection, PostedWorkout
from .client import (
    PelotonClient,
    PelotonAuthenticator,
    PelotonApiLogin,
    PelotonSession,
    PelotonError,
    LoginError,
    SessionExpiredError,
    PelotonFetchError,
)
from .provider import PelotonProvider
from .repository import PelotonConnectionRepository, PostedWorkoutRepository
from .poller import PelotonPoller, PollResult, PollSummary, reauth_url

__all__ = [
    # Models
    "PelotonConnection",
    "PostedWorkout",
    # Client
    "PelotonClient",
    "PelotonAuthenticator",
    "PelotonApiLogin",
    "PelotonSession",
    "PelotonError",
    "LoginError",
    "SessionExpiredError",
    "PelotonFetchError",
    # Provider
    "PelotonProvider",
    # Repositories
    "PelotonConnectionRepository",
    "PostedWorkoutRepository",
    # Poller
    "PelotonPoller",
    "PollResult",
    "PollSummary",
    "reauth_url",
]
