"""
Formatting utilities for Slack messages.

Used by the activity publisher and the verification DMs.
"""

import re

METERS_PER_MILE = 1609.344

SLACK_USER_ID_PATTERN = re.compile(r"^U[A-Z0-9]{8,}$")

DISCIPLINE_EMOJI = {
    "running": "🏃",
    "outdoor_running": "🏃",
    "walking": "🚶",
    "outdoor_walking": "🚶",
    "cycling": "🚴",
    "outdoor_cycling": "🚴",
}
DEFAULT_EMOJI = "🏃"


def miles_from_meters(meters: float) -> float:
    """Convert meters to statute miles."""
    return meters / METERS_PER_MILE


def is_valid_slack_user_id(value: str | None) -> bool:
    """Check Slack member id shape (e.g. 'U04HBADQP0B')."""
    return bool(value) and bool(SLACK_USER_ID_PATTERN.match(value))


def workout_emoji(discipline: str | None) -> str:
    """Emoji for a Peloton fitness discipline, running by default."""
    return DISCIPLINE_EMOJI.get(discipline or "", DEFAULT_EMOJI)


def slack_mention(user_id: str) -> str:
    return f"<@{user_id}>"


def format_distance_line(
    miles: float,
    emoji: str = DEFAULT_EMOJI,
    pedometer_user_id: str | None = None
) -> str:
    """
    Format the pedometer line.

    Args:
        miles: Distance in miles
        emoji: Trailing emoji
        pedometer_user_id: Slack user to mention at the start (optional)

    Returns:
        Formatted string (e.g., '<@U123> +3.11 mile 🏃')
    """
    line = f"+{miles:.2f} mile {emoji}"
    if pedometer_user_id:
        return f"{slack_mention(pedometer_user_id)} {line}"
    return line


def format_athlete_name(firstname: str | None, lastname: str | None) -> str:
    """Full display name, 'Runner' when both parts are empty."""
    name = f"{firstname or ''} {lastname or ''}".strip()
    return name or "Runner"
