"""
lms_insights/schemas/dashboard.py

Serializable bundle of every aggregate for one filter state.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from lms_insights.schemas.filters import EngagementFilterSpecification, FilterSpecification
from lms_insights.services.engagement_analytics_service import (
    CountryCount,
    DemoStats,
    EngagementSummary,
)
from lms_insights.services.training_analytics_service import (
    CategoryDetail,
    CompletionRates,
    EngagementMetrics,
    GeographicDistribution,
    KeyStatistics,
    MonthlyBreakdownEntry,
    WebinarEnrollmentStats,
)


class DashboardSnapshot(BaseModel):
    """
    Display-ready aggregates. Recomputed on every filter change, never stored.

    ``monthly_breakdown`` is ``None`` when the filtered records span a single
    month. ``category_detail`` is only populated when exactly one category
    is selected.
    """

    model_config = ConfigDict(frozen=True)

    filters: FilterSpecification
    record_count: int = Field(..., ge=0)
    completion_rates: CompletionRates
    geographic_distribution: GeographicDistribution
    engagement_metrics: EngagementMetrics
    monthly_breakdown: list[MonthlyBreakdownEntry] | None = None
    webinar_enrollments: WebinarEnrollmentStats
    key_statistics: KeyStatistics
    category_detail: CategoryDetail | None = None

    engagement_filters: EngagementFilterSpecification | None = None
    engagement_view_count: int = Field(0, ge=0)
    engagement_summary: EngagementSummary | None = None
    demo_overview: list[DemoStats] = Field(default_factory=list)
    top_countries: list[CountryCount] = Field(default_factory=list)
