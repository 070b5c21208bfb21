"""
Shared utilities.

- exceptions: domain error taxonomy
- repository: BaseRepository with conflict-aware inserts
- formatters: Slack message formatting helpers
- slack: Slack Web API client
"""
