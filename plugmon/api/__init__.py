"""
Web API routers.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-010)

TODO:
- None
"""
