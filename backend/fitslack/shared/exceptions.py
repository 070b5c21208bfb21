"""
Domain exceptions.

Vendor errors (Strava, Slack, Peloton) live next to their clients and
derive from VendorError so the HTTP layer can map them in one place.
"""


class FitSlackError(Exception):
    """Base application error."""
    pass


class NotFoundError(FitSlackError):
    """Missing connection, token or user."""
    pass


class ValidationError(FitSlackError):
    """Client input is malformed (e.g. Slack id pattern)."""
    pass


class AuthorizationError(FitSlackError):
    """Caller is not allowed to perform the action (e.g. unverified Slack user)."""
    pass


class VendorError(FitSlackError):
    """Failure reported by, or while talking to, an external vendor API."""
    pass


class AuthenticationError(FitSlackError):
    """Credentials missing or malformed (e.g. no bearer token)."""
    pass
