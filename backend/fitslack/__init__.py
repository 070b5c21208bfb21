"""Fitness to Slack: auto-post Strava and Peloton workouts to Slack."""

__version__ = "0.1.0"
