"""
Feature modules.

- strava: OAuth, API client, connection store, webhook pipeline
- peloton: login, API client, connection store, poller
- verification: standalone Slack verification ledger
- posting: provider capability and Slack publisher shared by both
"""
