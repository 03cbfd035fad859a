"""
lms_insights/domain/engagement.py

Canonical StoryLane demo-view records.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngagementRecord:
    """
    One StoryLane demo view.

    ``last_view`` and ``total_time`` are kept as raw text; consumers parse
    ``last_view`` on demand. ``percent_complete`` is on the 0-100 scale.
    """

    demo: str
    link: str
    last_view: str
    total_time: str
    steps_completed: int
    percent_complete: float
    opened_cta: str
    cta_clicked: bool
    country: str
    centre_number: str = ""
