"""
tests/test_filters.py

Pytest unit tests for filter specifications and the record filters.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from lms_insights.domain.engagement import EngagementRecord
from lms_insights.domain.training import CourseCategory, TrainingRecord
from lms_insights.schemas.filters import EngagementFilterSpecification, FilterSpecification
from lms_insights.services.filter_service import EngagementFilter, TrainingFilter


def _record(
    course: str,
    enrolled: datetime = datetime(2024, 5, 1),
    country: str = "UK",
    centre: str = "",
) -> TrainingRecord:
    return TrainingRecord(
        course=course,
        enrollment_date=enrolled,
        centre_country=country,
        centre_number=centre,
    )


def _view(demo: str, last_view: str = "5/7/24 13:25", country: str = "United Kingdom") -> EngagementRecord:
    return EngagementRecord(
        demo=demo,
        link="l",
        last_view=last_view,
        total_time="t",
        steps_completed=1,
        percent_complete=50.0,
        opened_cta="-",
        cta_clicked=False,
        country=country,
    )


@pytest.fixture()
def records() -> list[TrainingRecord]:
    return [
        _record("Webinar: Intro", datetime(2024, 3, 5), "UK", "C1"),
        _record("Recording: Intro", datetime(2024, 4, 5), "Ireland", "C2"),
        _record("Maths GCSE", datetime(2024, 5, 5), "United Kingdom", "C1"),
        _record("BTEC Sport", datetime(2024, 6, 5), "India", "C3"),
    ]


# ---------------------------------------------------------------------------
# Specification validation
# ---------------------------------------------------------------------------


class TestFilterSpecification:
    def test_defaults_are_unrestricted(self) -> None:
        spec = FilterSpecification()
        assert spec.has_time_range is False
        assert spec.categories == ()
        assert spec.country == "all"

    def test_all_marker_clears_bounds(self) -> None:
        spec = FilterSpecification(start_month="all", end_month="", course="All")
        assert (spec.start_month, spec.end_month, spec.course) == (None, None, None)

    def test_accepts_camel_case_aliases(self) -> None:
        spec = FilterSpecification.model_validate(
            {"startMonth": "2024-01", "qualificationType": "VQ", "categories": ["Webinar"]}
        )
        assert spec.start_month == "2024-01"
        assert spec.qualification_type == "vq"
        assert spec.categories == (CourseCategory.WEBINAR,)

    @pytest.mark.parametrize("month", ["2024-13", "24-01", "May 2024"])
    def test_rejects_bad_month(self, month: str) -> None:
        with pytest.raises(ValidationError):
            FilterSpecification(start_month=month)

    def test_rejects_inverted_range(self) -> None:
        with pytest.raises(ValidationError):
            FilterSpecification(start_month="2024-06", end_month="2024-01")

    def test_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            FilterSpecification.model_validate({"region": "uk"})

    def test_blank_centres_dropped(self) -> None:
        assert FilterSpecification(centres=[" C1 ", "", "  "]).centres == ("C1",)

    def test_month_in_range_is_inclusive(self) -> None:
        spec = FilterSpecification(start_month="2024-02", end_month="2024-04")
        assert [spec.month_in_range(key) for key in ("2024-01", "2024-02", "2024-04", "2024-05")] == [
            False,
            True,
            True,
            False,
        ]


# ---------------------------------------------------------------------------
# Training filter
# ---------------------------------------------------------------------------


class TestTrainingFilter:
    def test_empty_spec_returns_input(self, records: list[TrainingRecord]) -> None:
        assert TrainingFilter().apply(records, FilterSpecification()) == records

    def test_empty_categories_is_noop(self, records: list[TrainingRecord]) -> None:
        assert TrainingFilter().apply(records, FilterSpecification(categories=[])) == records

    def test_single_category(self, records: list[TrainingRecord]) -> None:
        filtered = TrainingFilter().apply(records, FilterSpecification(categories=["Webinar"]))
        assert [record.course for record in filtered] == ["Webinar: Intro"]

    def test_categories_are_or(self, records: list[TrainingRecord]) -> None:
        spec = FilterSpecification(categories=["Webinar", "Recording"])
        assert len(TrainingFilter().apply(records, spec)) == 2

    def test_time_range(self, records: list[TrainingRecord]) -> None:
        spec = FilterSpecification(start_month="2024-04", end_month="2024-05")
        filtered = TrainingFilter().apply(records, spec)
        assert [record.course for record in filtered] == ["Recording: Intro", "Maths GCSE"]

    def test_open_ended_range(self, records: list[TrainingRecord]) -> None:
        filtered = TrainingFilter().apply(records, FilterSpecification(start_month="2024-05"))
        assert len(filtered) == 2

    def test_country(self, records: list[TrainingRecord]) -> None:
        uk = TrainingFilter().apply(records, FilterSpecification(country="uk"))
        international = TrainingFilter().apply(records, FilterSpecification(country="international"))
        assert len(uk) == 2
        assert len(international) == 2

    def test_course_narrows_elearning_only(self, records: list[TrainingRecord]) -> None:
        filtered = TrainingFilter().apply(records, FilterSpecification(course="Maths GCSE"))
        assert [record.course for record in filtered] == [
            "Webinar: Intro",
            "Recording: Intro",
            "Maths GCSE",
        ]

    def test_qualification(self, records: list[TrainingRecord]) -> None:
        filtered = TrainingFilter().apply(records, FilterSpecification(qualification_type="vq"))
        assert [record.course for record in filtered] == ["BTEC Sport"]

    def test_centres_and_courses(self, records: list[TrainingRecord]) -> None:
        spec = FilterSpecification(centres=["C1"], courses=["Maths GCSE", "BTEC Sport"])
        assert [record.course for record in TrainingFilter().apply(records, spec)] == ["Maths GCSE"]

    def test_search_is_case_insensitive(self, records: list[TrainingRecord]) -> None:
        filtered = TrainingFilter().apply(records, FilterSpecification(search="intro"))
        assert len(filtered) == 2

    def test_search_matches_centre_country(self, records: list[TrainingRecord]) -> None:
        filtered = TrainingFilter().apply(records, FilterSpecification(search="IRELAND"))
        assert [record.course for record in filtered] == ["Recording: Intro"]

    def test_dimensions_combine_with_and(self, records: list[TrainingRecord]) -> None:
        spec = FilterSpecification(country="uk", categories=["eLearning"])
        assert [record.course for record in TrainingFilter().apply(records, spec)] == ["Maths GCSE"]

    def test_does_not_mutate_input(self, records: list[TrainingRecord]) -> None:
        snapshot = list(records)
        TrainingFilter().apply(records, FilterSpecification(country="uk"))
        assert records == snapshot


# ---------------------------------------------------------------------------
# Engagement filter
# ---------------------------------------------------------------------------


class TestEngagementFilter:
    def test_time_range_uses_last_view(self) -> None:
        views = [_view("a", "4/30/24 10:00"), _view("b", "5/7/24 13:25"), _view("c", "6/1/24 09:00")]
        spec = EngagementFilterSpecification(start_month="2024-05", end_month="2024-05")
        assert [view.demo for view in EngagementFilter().apply(views, spec)] == ["b"]

    def test_unparseable_last_view_is_kept(self) -> None:
        views = [_view("a", "unknown")]
        spec = EngagementFilterSpecification(start_month="2024-05")
        assert len(EngagementFilter().apply(views, spec)) == 1

    def test_demo_type_substring(self) -> None:
        views = [_view("Intro Tour"), _view("Pricing Tour"), _view("Intro Deep Dive")]
        spec = EngagementFilterSpecification(demo_type="Intro")
        assert [view.demo for view in EngagementFilter().apply(views, spec)] == ["Intro Tour", "Intro Deep Dive"]

    def test_demo_type_all_is_noop(self) -> None:
        views = [_view("Intro Tour"), _view("Pricing Tour")]
        assert len(EngagementFilter().apply(views, EngagementFilterSpecification(demo_type="all"))) == 2

    def test_country_and_category(self) -> None:
        views = [
            _view("Webinar teaser", country="United Kingdom"),
            _view("Webinar teaser", country="India"),
            _view("Platform tour", country="UK"),
        ]
        spec = EngagementFilterSpecification(country="uk", categories=["Webinar"])
        assert len(EngagementFilter().apply(views, spec)) == 1
