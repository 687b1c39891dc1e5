"""
Ingestion side: plug polling, response parsing and the aggregation scheduler.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-007)

TODO:
- None
"""
