"""
Slack verification module.

Usage:
    from fitslack.features.verification import VerificationService

Models:
- VerifiedSlackUser: standalone verification ledger
"""

from .models import VerifiedSlackUser
from .repository import VerifiedSlackUserRepository
from .service import (
    VerificationService,
    VerificationStart,
    generate_verification_token,
    require_slack_user_id,
)

__all__ = [
    "VerifiedSlackUser",
    "VerifiedSlackUserRepository",
    "VerificationService",
    "VerificationStart",
    "generate_verification_token",
    "require_slack_user_id",
]
