"""
plugmon: smart plug power telemetry collector.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

__version__ = "0.1.0"
