"""
lms_insights/services/engagement_analytics_service.py

Aggregation over canonical StoryLane engagement records.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from lms_insights.domain.engagement import EngagementRecord
from lms_insights.parsing.dates import month_key, month_label_from_key, parse_date
from lms_insights.services.training_analytics_service import MonthOption

logger = logging.getLogger(__name__)

TOP_COUNTRIES_LIMIT = 10


@dataclass(frozen=True)
class DemoStats:
    """
    Engagement figures for one demo.

    ``avg_percent_complete`` is on the 0-100 scale.
    """

    demo: str
    avg_steps_completed: float
    avg_percent_complete: float
    cta_clicks: int
    total_views: int
    countries_breakdown: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CountryCount:
    country: str
    count: int


@dataclass(frozen=True)
class EngagementSummary:
    total_views: int
    unique_demos: int
    cta_clicks: int
    cta_click_rate: float
    avg_percent_complete: float


def _country_counts(records: Sequence[EngagementRecord]) -> Counter[str]:
    counts: Counter[str] = Counter()
    for record in records:
        country = record.country.strip()
        if country:
            counts[country] += 1
    return counts


def _stats_for(demo: str, records: Sequence[EngagementRecord]) -> DemoStats:
    if not records:
        return DemoStats(
            demo=demo,
            avg_steps_completed=0.0,
            avg_percent_complete=0.0,
            cta_clicks=0,
            total_views=0,
            countries_breakdown={},
        )
    views = len(records)
    return DemoStats(
        demo=demo,
        avg_steps_completed=sum(record.steps_completed for record in records) / views,
        avg_percent_complete=sum(record.percent_complete for record in records) / views,
        cta_clicks=sum(1 for record in records if record.cta_clicked),
        total_views=views,
        countries_breakdown=dict(_country_counts(records)),
    )


class EngagementAnalyticsService:
    """
    Stateless aggregation engine for ``EngagementRecord`` collections.
    """

    def demo_stats(self, records: Sequence[EngagementRecord], demo_name: str) -> DemoStats:
        """
        Stats for the records whose demo is exactly ``demo_name``.

        A demo with no records returns an all-zero result.
        """

        return _stats_for(demo_name, [record for record in records if record.demo == demo_name])

    def demo_overview(self, records: Sequence[EngagementRecord]) -> list[DemoStats]:
        """
        Stats for every demo, most viewed first.
        """

        grouped: dict[str, list[EngagementRecord]] = {}
        for record in records:
            grouped.setdefault(record.demo, []).append(record)
        overview = [_stats_for(demo, demo_records) for demo, demo_records in grouped.items()]
        logger.debug("demo_overview demos=%d views=%d", len(overview), len(records))
        return sorted(overview, key=lambda stats: stats.total_views, reverse=True)

    def demo_names(self, records: Sequence[EngagementRecord]) -> list[str]:
        return sorted({record.demo for record in records})

    def top_countries(
        self,
        records: Sequence[EngagementRecord],
        limit: int = TOP_COUNTRIES_LIMIT,
    ) -> list[CountryCount]:
        return [
            CountryCount(country=country, count=count)
            for country, count in _country_counts(records).most_common(limit)
        ]

    def summary(self, records: Sequence[EngagementRecord]) -> EngagementSummary:
        views = len(records)
        clicks = sum(1 for record in records if record.cta_clicked)
        return EngagementSummary(
            total_views=views,
            unique_demos=len({record.demo for record in records}),
            cta_clicks=clicks,
            cta_click_rate=clicks / views * 100 if views else 0.0,
            avg_percent_complete=(
                sum(record.percent_complete for record in records) / views if views else 0.0
            ),
        )

    def available_months(self, records: Sequence[EngagementRecord]) -> list[MonthOption]:
        keys: set[str] = set()
        for record in records:
            viewed_at = parse_date(record.last_view)
            if viewed_at is not None:
                keys.add(month_key(viewed_at))
        return [MonthOption(value=key, label=month_label_from_key(key)) for key in sorted(keys)]
