"""
lms_insights/services/filter_service.py

Applies filter specifications to canonical record collections.

Dimensions combine with AND. The category dimension is an OR over the
selected categories. An empty or "all" dimension imposes no restriction.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from lms_insights.domain.engagement import EngagementRecord
from lms_insights.domain.training import TrainingRecord
from lms_insights.parsing.dates import month_key, parse_date
from lms_insights.schemas.filters import EngagementFilterSpecification, FilterSpecification
from lms_insights.services.classification import (
    infer_category,
    is_elearning,
    qualification_type,
    region_of,
)

logger = logging.getLogger(__name__)

TrainingPredicate = Callable[[TrainingRecord], bool]
EngagementPredicate = Callable[[EngagementRecord], bool]


def _contains(needle: str, *haystacks: str) -> bool:
    return any(needle in (haystack or "").lower() for haystack in haystacks)


class TrainingFilter:
    """
    Filters ``TrainingRecord`` collections by a ``FilterSpecification``.
    """

    def apply(
        self,
        records: Sequence[TrainingRecord],
        spec: FilterSpecification,
    ) -> list[TrainingRecord]:
        predicates = self._predicates(spec)
        if not predicates:
            return list(records)
        filtered = [record for record in records if all(check(record) for check in predicates)]
        logger.debug("Training filter kept %d of %d records", len(filtered), len(records))
        return filtered

    @staticmethod
    def _predicates(spec: FilterSpecification) -> list[TrainingPredicate]:
        predicates: list[TrainingPredicate] = []

        if spec.has_time_range:
            predicates.append(lambda record: spec.month_in_range(month_key(record.enrollment_date)))

        if spec.categories:
            selected = set(spec.categories)
            predicates.append(lambda record: infer_category(record.course) in selected)

        if spec.country != "all":
            predicates.append(lambda record: region_of(record.centre_country) == spec.country)

        if spec.course:
            course = spec.course
            predicates.append(
                lambda record: not is_elearning(record.course) or record.course == course
            )

        if spec.qualification_type != "all":
            predicates.append(
                lambda record: qualification_type(record.course) == spec.qualification_type
            )

        if spec.centres:
            centres = set(spec.centres)
            predicates.append(lambda record: record.centre_number.strip() in centres)

        if spec.courses:
            courses = set(spec.courses)
            predicates.append(lambda record: record.course in courses)

        if spec.search:
            needle = spec.search.lower()
            predicates.append(
                lambda record: _contains(
                    needle,
                    record.course,
                    record.centre_number,
                    record.centre_country,
                )
            )

        return predicates


class EngagementFilter:
    """
    Filters ``EngagementRecord`` collections by an ``EngagementFilterSpecification``.

    A record whose ``last_view`` cannot be parsed is not excluded by the
    time range.
    """

    def apply(
        self,
        records: Sequence[EngagementRecord],
        spec: EngagementFilterSpecification,
    ) -> list[EngagementRecord]:
        predicates = self._predicates(spec)
        if not predicates:
            return list(records)
        filtered = [record for record in records if all(check(record) for check in predicates)]
        logger.debug("Engagement filter kept %d of %d records", len(filtered), len(records))
        return filtered

    @staticmethod
    def _in_time_range(record: EngagementRecord, spec: EngagementFilterSpecification) -> bool:
        viewed_at = parse_date(record.last_view)
        if viewed_at is None:
            return True
        return spec.month_in_range(month_key(viewed_at))

    def _predicates(self, spec: EngagementFilterSpecification) -> list[EngagementPredicate]:
        predicates: list[EngagementPredicate] = []

        if spec.has_time_range:
            predicates.append(lambda record: self._in_time_range(record, spec))

        if spec.categories:
            selected = set(spec.categories)
            predicates.append(lambda record: infer_category(record.demo) in selected)

        if spec.country != "all":
            predicates.append(lambda record: region_of(record.country) == spec.country)

        if spec.qualification_type != "all":
            predicates.append(
                lambda record: qualification_type(record.demo) == spec.qualification_type
            )

        if spec.demo_type:
            demo_type = spec.demo_type
            predicates.append(lambda record: demo_type in record.demo)

        if spec.demos:
            demos = set(spec.demos)
            predicates.append(lambda record: record.demo in demos)

        if spec.centres:
            centres = set(spec.centres)
            predicates.append(lambda record: record.centre_number.strip() in centres)

        if spec.search:
            needle = spec.search.lower()
            predicates.append(
                lambda record: _contains(
                    needle,
                    record.demo,
                    record.country,
                    record.centre_number,
                    record.last_view,
                )
            )

        return predicates
