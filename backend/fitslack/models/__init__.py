"""
Database Models

Feature models are imported lazily to avoid circular imports.
Use direct imports from features/ modules when possible.
"""

from fitslack.models.base import Base


def register_models() -> None:
    """Import every feature model so it is registered on Base.metadata."""
    from fitslack.features.strava import models as strava_models  # noqa
    from fitslack.features.peloton import models as peloton_models  # noqa
    from fitslack.features.verification import models as verification_models  # noqa


__all__ = ["Base", "register_models"]
