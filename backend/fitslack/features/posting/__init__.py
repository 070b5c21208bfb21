"""
Posting pipeline shared by all fitness providers.

Usage:
    from fitslack.features.posting import FitnessProvider, ActivityPublisher
"""

from .provider import FitnessProvider
from .publisher import ActivityPublisher

__all__ = ["FitnessProvider", "ActivityPublisher"]
