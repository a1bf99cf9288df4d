"""
Timestamps are stored as naive UTC (``timestamp without time zone``).

Aware values coming from clients are converted to UTC and stripped of
their offset before they are compared or written.
"""
from datetime import datetime, timezone
from typing import Optional


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
