"""
tests/test_training_analytics.py

Pytest unit tests for TrainingAnalyticsService.

All tests are pure Python with in-memory records only.

Coverage
--------
- Category inference and completion rates per category
- Geographic split and engagement averages
- Monthly breakdown (single-month suppression, ordering, running average)
- Webinar enrollment stats and ordering
- Category detail, key statistics and filter option helpers
- Empty collections never divide by zero
"""

from __future__ import annotations

from datetime import datetime

import pytest

from lms_insights.domain.training import CourseCategory, EnrollmentStatus, TrainingRecord
from lms_insights.services.classification import infer_category, qualification_type, region_of
from lms_insights.services.training_analytics_service import TrainingAnalyticsService


def _record(
    course: str,
    *,
    status: EnrollmentStatus = EnrollmentStatus.NOT_STARTED,
    enrolled: datetime = datetime(2024, 5, 1),
    progress: float = 0.0,
    minutes: int = 0,
    quiz: float | None = None,
    country: str = "",
) -> TrainingRecord:
    return TrainingRecord(
        course=course,
        enrollment_date=enrolled,
        status=status,
        progress_percentage=progress,
        time_spent_minutes=minutes,
        quiz_score=quiz,
        centre_country=country,
    )


@pytest.fixture()
def svc() -> TrainingAnalyticsService:
    return TrainingAnalyticsService()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassification:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Live Webinar: Exam Prep", CourseCategory.WEBINAR),
            ("Webinar Recording - March", CourseCategory.WEBINAR),
            ("RECORDING: Assessment tips", CourseCategory.RECORDING),
            ("Maths GCSE", CourseCategory.ELEARNING),
            ("   ", CourseCategory.OTHER),
        ],
    )
    def test_infer_category(self, title: str, expected: CourseCategory) -> None:
        assert infer_category(title) is expected

    @pytest.mark.parametrize(
        ("title", "expected"),
        [("BTEC Sport", "vq"), ("PoP onboarding", "vq"), ("Cohort 3 induction", "vq"), ("GCSE Maths", "gq")],
    )
    def test_qualification_type(self, title: str, expected: str) -> None:
        assert qualification_type(title) == expected

    @pytest.mark.parametrize(
        ("country", "expected"),
        [("UK", "uk"), (" united kingdom ", "uk"), ("United States", "international"), ("", "international")],
    )
    def test_region(self, country: str, expected: str) -> None:
        assert region_of(country) == expected


# ---------------------------------------------------------------------------
# Completion rates
# ---------------------------------------------------------------------------


class TestCompletionRates:
    def test_webinars_always_full_success(self, svc: TrainingAnalyticsService) -> None:
        records = [
            _record("Webinar A", status=EnrollmentStatus.NOT_STARTED),
            _record("Webinar B", status=EnrollmentStatus.UNENROLLED),
            _record("Webinar C", status=EnrollmentStatus.IN_PROGRESS),
        ]
        assert svc.completion_rates(records).live_webinar == 100.0

    def test_no_webinars_is_zero(self, svc: TrainingAnalyticsService) -> None:
        assert svc.completion_rates([_record("Maths")]).live_webinar == 0.0

    def test_recording_and_elearning_use_status(self, svc: TrainingAnalyticsService) -> None:
        records = [
            _record("Recording 1", status=EnrollmentStatus.COMPLETED),
            _record("Recording 2", status=EnrollmentStatus.IN_PROGRESS),
            _record("Maths", status=EnrollmentStatus.COMPLETED),
            _record("English", status=EnrollmentStatus.NOT_STARTED),
            _record("Science", status=EnrollmentStatus.NOT_STARTED),
            _record("History", status=EnrollmentStatus.NOT_STARTED),
        ]

        rates = svc.completion_rates(records)

        assert rates.recording == pytest.approx(50.0)
        assert rates.e_learning == pytest.approx(25.0)
        assert rates.average == pytest.approx((0.0 + 50.0 + 25.0) / 3)

    def test_empty_collection(self, svc: TrainingAnalyticsService) -> None:
        rates = svc.completion_rates([])
        assert (rates.live_webinar, rates.recording, rates.e_learning) == (0.0, 0.0, 0.0)


# ---------------------------------------------------------------------------
# Geography & engagement
# ---------------------------------------------------------------------------


class TestGeographyAndEngagement:
    def test_geographic_split(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("a", country="UK"), _record("b", country="United Kingdom"), _record("c", country="Ireland")]

        distribution = svc.geographic_distribution(records)

        assert (distribution.uk, distribution.international) == (2, 1)

    def test_engagement_averages(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("a", minutes=30, progress=50.0), _record("b", minutes=90, progress=100.0)]

        metrics = svc.engagement_metrics(records)

        assert metrics.time_spent == pytest.approx(60.0)
        assert metrics.progress_percentage == pytest.approx(75.0)

    def test_engagement_empty(self, svc: TrainingAnalyticsService) -> None:
        metrics = svc.engagement_metrics([])
        assert (metrics.time_spent, metrics.progress_percentage) == (0.0, 0.0)


# ---------------------------------------------------------------------------
# Monthly breakdown
# ---------------------------------------------------------------------------


class TestMonthlyBreakdown:
    def test_single_month_returns_none(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("a", enrolled=datetime(2024, 5, 1)), _record("b", enrolled=datetime(2024, 5, 30))]
        assert svc.monthly_breakdown(records) is None

    def test_empty_returns_none(self, svc: TrainingAnalyticsService) -> None:
        assert svc.monthly_breakdown([]) is None

    def test_entries_sorted_ascending(self, svc: TrainingAnalyticsService) -> None:
        records = [
            _record("a", enrolled=datetime(2024, 7, 3), status=EnrollmentStatus.COMPLETED, progress=100.0),
            _record("b", enrolled=datetime(2023, 12, 9), status=EnrollmentStatus.IN_PROGRESS, progress=40.0),
            _record("c", enrolled=datetime(2024, 7, 20), progress=0.0),
        ]

        breakdown = svc.monthly_breakdown(records)

        assert breakdown is not None
        assert [entry.month for entry in breakdown] == ["2023-12", "2024-07"]
        assert breakdown[0].display_name == "December 2023"
        july = breakdown[1]
        assert (july.total, july.completed, july.in_progress, july.not_started) == (2, 1, 0, 1)
        assert july.avg_engagement == pytest.approx(50.0)

    def test_unenrolled_counts_only_towards_total(self, svc: TrainingAnalyticsService) -> None:
        records = [
            _record("a", enrolled=datetime(2024, 1, 1), status=EnrollmentStatus.UNENROLLED),
            _record("b", enrolled=datetime(2024, 2, 1)),
        ]

        breakdown = svc.monthly_breakdown(records)

        assert breakdown is not None
        january = breakdown[0]
        assert january.total == 1
        assert january.completed + january.in_progress + january.not_started == 0


# ---------------------------------------------------------------------------
# Webinars
# ---------------------------------------------------------------------------


class TestWebinarStats:
    def test_counts_sorted_descending(self, svc: TrainingAnalyticsService) -> None:
        records = (
            [_record("Webinar: Grading")] * 2
            + [_record("Webinar: Intro")] * 5
            + [_record("Maths")] * 4
            + [_record("Webinar: Safeguarding")] * 3
        )

        stats = svc.webinar_enrollment_stats(records)

        assert stats.total_webinar_enrollments == 10
        assert [(item.course, item.count) for item in stats.webinar_details] == [
            ("Webinar: Intro", 5),
            ("Webinar: Safeguarding", 3),
            ("Webinar: Grading", 2),
        ]

    def test_count_by_exact_title(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("Webinar: Intro"), _record("Webinar: Intro"), _record("webinar: intro")]
        assert svc.count_webinar_enrollments(records, "Webinar: Intro") == 2

    def test_no_webinars(self, svc: TrainingAnalyticsService) -> None:
        stats = svc.webinar_enrollment_stats([_record("Maths")])
        assert stats.total_webinar_enrollments == 0
        assert stats.webinar_details == []


# ---------------------------------------------------------------------------
# Detail, headline figures, filter options
# ---------------------------------------------------------------------------


class TestCategoryDetail:
    def test_detail(self, svc: TrainingAnalyticsService) -> None:
        records = [
            _record("Maths", status=EnrollmentStatus.COMPLETED, minutes=60, progress=100.0, quiz=80.0),
            _record("Maths", status=EnrollmentStatus.IN_PROGRESS, minutes=20, progress=50.0),
            _record("English", minutes=10, progress=0.0, quiz=60.0),
        ]

        detail = svc.category_detail(records)

        assert detail.status_counts == {
            "Completed": 1,
            "In Progress": 1,
            "Not Started": 1,
            "Unenrolled": 0,
        }
        assert detail.avg_time_spent == pytest.approx(30.0)
        assert detail.avg_progress == pytest.approx(50.0)
        assert detail.avg_quiz_score == pytest.approx(70.0)
        assert [(item.course, item.count) for item in detail.top_courses] == [("Maths", 2), ("English", 1)]

    def test_top_courses_limited_to_five(self, svc: TrainingAnalyticsService) -> None:
        records = [_record(f"Course {i}") for i in range(8)]
        assert len(svc.category_detail(records).top_courses) == 5


class TestKeyStatistics:
    def test_headline_figures(self, svc: TrainingAnalyticsService) -> None:
        records = [
            _record("Webinar A", country="UK", minutes=10),
            _record("Maths", status=EnrollmentStatus.COMPLETED, country="India", minutes=50),
        ]

        stats = svc.key_statistics(records)

        assert stats.total_webinar_enrollments == 1
        assert stats.uk_percentage == pytest.approx(50.0)
        assert stats.average_time_spent == pytest.approx(30.0)
        assert stats.average_completion_rate == pytest.approx((100.0 + 0.0 + 100.0) / 3)

    def test_webinar_total_uses_unfiltered_webinars(self, svc: TrainingAnalyticsService) -> None:
        all_webinars = [_record("Webinar A"), _record("Webinar B"), _record("Webinar C")]
        stats = svc.key_statistics([_record("Maths")], all_webinar_records=all_webinars)
        assert stats.total_webinar_enrollments == 3

    def test_empty(self, svc: TrainingAnalyticsService) -> None:
        stats = svc.key_statistics([])
        assert stats.uk_percentage == 0.0
        assert stats.total_webinar_enrollments == 0


class TestFilterOptions:
    def test_available_months(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("a", enrolled=datetime(2024, 7, 3)), _record("b", enrolled=datetime(2024, 2, 9))]

        options = svc.available_months(records)

        assert [(option.value, option.label) for option in options] == [
            ("2024-02", "February 2024"),
            ("2024-07", "July 2024"),
        ]

    def test_available_categories_in_enum_order(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("Maths"), _record("Webinar A")]
        assert svc.available_categories(records) == [CourseCategory.WEBINAR, CourseCategory.ELEARNING]

    def test_elearning_courses(self, svc: TrainingAnalyticsService) -> None:
        records = [_record("Science"), _record("Webinar A"), _record("Maths"), _record("Science")]
        assert svc.elearning_courses(records) == ["Maths", "Science"]
