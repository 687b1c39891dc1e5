"""
Storage operations executed by the request queue.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-004)

TODO:
- None
"""
