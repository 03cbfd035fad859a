"""
lms_insights/services/dashboard_service.py

Filter-then-aggregate entry point used by the presentation layer.
"""

from __future__ import annotations

import logging
from typing import Sequence

from lms_insights.domain.engagement import EngagementRecord
from lms_insights.domain.training import TrainingRecord
from lms_insights.schemas.dashboard import DashboardSnapshot
from lms_insights.schemas.filters import EngagementFilterSpecification, FilterSpecification
from lms_insights.services.engagement_analytics_service import EngagementAnalyticsService
from lms_insights.services.filter_service import EngagementFilter, TrainingFilter
from lms_insights.services.training_analytics_service import TrainingAnalyticsService

logger = logging.getLogger(__name__)


class DashboardService:
    """
    Builds a ``DashboardSnapshot`` from full collections and filter state.
    """

    def __init__(
        self,
        *,
        training_analytics: TrainingAnalyticsService | None = None,
        engagement_analytics: EngagementAnalyticsService | None = None,
        training_filter: TrainingFilter | None = None,
        engagement_filter: EngagementFilter | None = None,
    ) -> None:
        self._training = training_analytics or TrainingAnalyticsService()
        self._engagement = engagement_analytics or EngagementAnalyticsService()
        self._training_filter = training_filter or TrainingFilter()
        self._engagement_filter = engagement_filter or EngagementFilter()

    def build_snapshot(
        self,
        records: Sequence[TrainingRecord],
        spec: FilterSpecification | None = None,
        engagement_records: Sequence[EngagementRecord] = (),
        engagement_spec: EngagementFilterSpecification | None = None,
    ) -> DashboardSnapshot:
        """
        Filter both collections and compute every aggregate.

        Webinar enrollment totals are taken over the unfiltered webinar
        records so the headline count does not move with the time filter.
        """

        spec = spec or FilterSpecification()
        filtered = self._training_filter.apply(records, spec)
        all_webinars = self._training.webinar_records(records)

        category_detail = None
        if len(spec.categories) == 1:
            category_detail = self._training.category_detail(filtered)

        engagement_spec = engagement_spec or EngagementFilterSpecification()
        filtered_views = self._engagement_filter.apply(engagement_records, engagement_spec)

        logger.debug(
            "Building dashboard snapshot training=%d/%d engagement=%d/%d",
            len(filtered),
            len(records),
            len(filtered_views),
            len(engagement_records),
        )
        return DashboardSnapshot(
            filters=spec,
            record_count=len(filtered),
            completion_rates=self._training.completion_rates(filtered),
            geographic_distribution=self._training.geographic_distribution(filtered),
            engagement_metrics=self._training.engagement_metrics(filtered),
            monthly_breakdown=self._training.monthly_breakdown(filtered),
            webinar_enrollments=self._training.webinar_enrollment_stats(all_webinars),
            key_statistics=self._training.key_statistics(filtered, all_webinars),
            category_detail=category_detail,
            engagement_filters=engagement_spec,
            engagement_view_count=len(filtered_views),
            engagement_summary=self._engagement.summary(filtered_views),
            demo_overview=self._engagement.demo_overview(filtered_views),
            top_countries=self._engagement.top_countries(filtered_views),
        )


def build_dashboard_snapshot(
    records: Sequence[TrainingRecord],
    spec: FilterSpecification | None = None,
    engagement_records: Sequence[EngagementRecord] = (),
    engagement_spec: EngagementFilterSpecification | None = None,
) -> DashboardSnapshot:
    return DashboardService().build_snapshot(records, spec, engagement_records, engagement_spec)
