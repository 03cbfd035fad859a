"""
lms_insights/services/training_analytics_service.py

Deterministic aggregation over canonical LMS records.

Every method is a pure function of its input collection: nothing is cached,
nothing is mutated, and an empty collection always produces zeros rather
than a division error.

Rules
-----
Category           webinar > recording > eLearning, by case-insensitive
                   substring of the course title (see classification.py)
Completion rate    webinars: every enrollment is a success;
                   recordings / eLearning: status == Completed
Geography          UK when centre country is "uk" / "united kingdom"
Monthly breakdown  None unless records span at least two enrollment months
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from lms_insights.domain.training import CourseCategory, EnrollmentStatus, TrainingRecord
from lms_insights.parsing.dates import month_key, month_label, month_label_from_key
from lms_insights.services.classification import infer_category, is_elearning, is_uk

logger = logging.getLogger(__name__)

TOP_COURSES_LIMIT = 5


# ---------------------------------------------------------------------------
# Output dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompletionRates:
    """
    Completion percentage (0-100) per course category.
    """

    live_webinar: float
    recording: float
    e_learning: float

    @property
    def average(self) -> float:
        """Unweighted mean of the three category rates."""
        return (self.live_webinar + self.recording + self.e_learning) / 3


@dataclass(frozen=True)
class GeographicDistribution:
    """
    Enrollment counts split by centre location. Counts, not percentages.
    """

    uk: int
    international: int


@dataclass(frozen=True)
class EngagementMetrics:
    """
    Mean time spent (minutes) and mean progress (0-100) per enrollment.
    """

    time_spent: float
    progress_percentage: float


@dataclass(frozen=True)
class MonthlyBreakdownEntry:
    month: str
    display_name: str
    total: int
    completed: int
    in_progress: int
    not_started: int
    avg_engagement: float


@dataclass(frozen=True)
class WebinarEnrollment:
    course: str
    count: int


@dataclass(frozen=True)
class WebinarEnrollmentStats:
    """
    Webinar enrollments per exact course title, largest first.
    """

    total_webinar_enrollments: int
    webinar_details: list[WebinarEnrollment] = field(default_factory=list)


@dataclass(frozen=True)
class CourseCount:
    course: str
    count: int


@dataclass(frozen=True)
class CategoryDetail:
    """
    Course breakdown for one (usually single-category) record set.

    ``avg_quiz_score`` averages only records that have a quiz score.
    """

    status_counts: dict[str, int]
    avg_time_spent: float
    avg_progress: float
    avg_quiz_score: float
    top_courses: list[CourseCount]


@dataclass(frozen=True)
class KeyStatistics:
    """
    Headline figures shown above the dashboard charts.
    """

    total_webinar_enrollments: int
    average_completion_rate: float
    uk_percentage: float
    average_time_spent: float


@dataclass(frozen=True)
class MonthOption:
    value: str
    label: str


class _MonthAccumulator:
    """
    Streaming per-month counters with a running progress average.
    """

    def __init__(self, month: str, display_name: str) -> None:
        self.month = month
        self.display_name = display_name
        self.total = 0
        self.completed = 0
        self.in_progress = 0
        self.not_started = 0
        self.avg_engagement = 0.0

    def add(self, record: TrainingRecord) -> None:
        self.total += 1
        if record.status is EnrollmentStatus.COMPLETED:
            self.completed += 1
        elif record.status is EnrollmentStatus.IN_PROGRESS:
            self.in_progress += 1
        elif record.status is EnrollmentStatus.NOT_STARTED:
            self.not_started += 1

        previous_sum = self.avg_engagement * (self.total - 1)
        self.avg_engagement = (previous_sum + record.progress_percentage) / self.total

    def freeze(self) -> MonthlyBreakdownEntry:
        return MonthlyBreakdownEntry(
            month=self.month,
            display_name=self.display_name,
            total=self.total,
            completed=self.completed,
            in_progress=self.in_progress,
            not_started=self.not_started,
            avg_engagement=self.avg_engagement,
        )


def _rate(successes: int, total: int) -> float:
    return successes / total * 100 if total > 0 else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TrainingAnalyticsService:
    """
    Stateless aggregation engine for ``TrainingRecord`` collections.
    """

    def completion_rates(self, records: Sequence[TrainingRecord]) -> CompletionRates:
        """
        Percentage of successful enrollments per category.

        Webinars have no completion concept, so any webinar enrollment
        counts as a success and a non-empty webinar set is always 100 %.
        """

        totals: Counter[CourseCategory] = Counter()
        successes: Counter[CourseCategory] = Counter()

        for record in records:
            category = infer_category(record.course)
            if category is CourseCategory.WEBINAR:
                totals[category] += 1
                successes[category] += 1
                continue
            if category is not CourseCategory.RECORDING:
                category = CourseCategory.ELEARNING
            totals[category] += 1
            if record.status is EnrollmentStatus.COMPLETED:
                successes[category] += 1

        logger.debug("completion_rates totals=%s successes=%s", dict(totals), dict(successes))
        return CompletionRates(
            live_webinar=_rate(successes[CourseCategory.WEBINAR], totals[CourseCategory.WEBINAR]),
            recording=_rate(successes[CourseCategory.RECORDING], totals[CourseCategory.RECORDING]),
            e_learning=_rate(successes[CourseCategory.ELEARNING], totals[CourseCategory.ELEARNING]),
        )

    def geographic_distribution(self, records: Sequence[TrainingRecord]) -> GeographicDistribution:
        uk_count = sum(1 for record in records if is_uk(record.centre_country))
        return GeographicDistribution(uk=uk_count, international=len(records) - uk_count)

    def engagement_metrics(self, records: Sequence[TrainingRecord]) -> EngagementMetrics:
        if not records:
            return EngagementMetrics(time_spent=0.0, progress_percentage=0.0)
        return EngagementMetrics(
            time_spent=_mean([record.time_spent_minutes for record in records]),
            progress_percentage=_mean([record.progress_percentage for record in records]),
        )

    def monthly_breakdown(
        self,
        records: Iterable[TrainingRecord],
    ) -> list[MonthlyBreakdownEntry] | None:
        """
        Per-month status counts and running-average progress, oldest first.

        Returns ``None`` when the records cover one month or less; callers
        use that to hide the breakdown view.
        """

        months: dict[str, _MonthAccumulator] = {}
        for record in records:
            key = month_key(record.enrollment_date)
            accumulator = months.get(key)
            if accumulator is None:
                accumulator = _MonthAccumulator(key, month_label(record.enrollment_date))
                months[key] = accumulator
            accumulator.add(record)

        if len(months) <= 1:
            return None
        return [months[key].freeze() for key in sorted(months)]

    def count_webinar_enrollments(self, records: Sequence[TrainingRecord], webinar_name: str) -> int:
        """Count enrollments whose course title is exactly ``webinar_name``."""
        return sum(1 for record in records if record.course == webinar_name)

    def webinar_enrollment_stats(self, records: Sequence[TrainingRecord]) -> WebinarEnrollmentStats:
        counts: Counter[str] = Counter(
            record.course
            for record in records
            if infer_category(record.course) is CourseCategory.WEBINAR
        )
        # Counter.most_common keeps first-seen order for equal counts.
        details = [WebinarEnrollment(course=course, count=count) for course, count in counts.most_common()]
        return WebinarEnrollmentStats(
            total_webinar_enrollments=sum(item.count for item in details),
            webinar_details=details,
        )

    def category_detail(self, records: Sequence[TrainingRecord]) -> CategoryDetail:
        status_counts = {status.value: 0 for status in EnrollmentStatus}
        for record in records:
            status_counts[record.status.value] += 1

        quiz_scores = [record.quiz_score for record in records if record.quiz_score is not None]
        course_counts: Counter[str] = Counter(record.course for record in records)
        return CategoryDetail(
            status_counts=status_counts,
            avg_time_spent=_mean([record.time_spent_minutes for record in records]),
            avg_progress=_mean([record.progress_percentage for record in records]),
            avg_quiz_score=_mean(quiz_scores),
            top_courses=[
                CourseCount(course=course, count=count)
                for course, count in course_counts.most_common(TOP_COURSES_LIMIT)
            ],
        )

    def key_statistics(
        self,
        records: Sequence[TrainingRecord],
        all_webinar_records: Sequence[TrainingRecord] | None = None,
    ) -> KeyStatistics:
        """
        Headline figures for ``records``.

        Webinar enrollments are counted over ``all_webinar_records`` when it
        is non-empty, so the headline total ignores the active time filter.
        """

        completion = self.completion_rates(records)
        distribution = self.geographic_distribution(records)
        engagement = self.engagement_metrics(records)
        webinar_source = all_webinar_records if all_webinar_records else records
        webinars = self.webinar_enrollment_stats(webinar_source)
        return KeyStatistics(
            total_webinar_enrollments=webinars.total_webinar_enrollments,
            average_completion_rate=completion.average,
            uk_percentage=_rate(distribution.uk, len(records)),
            average_time_spent=engagement.time_spent,
        )

    def available_months(self, records: Sequence[TrainingRecord]) -> list[MonthOption]:
        keys = sorted({month_key(record.enrollment_date) for record in records})
        return [MonthOption(value=key, label=month_label_from_key(key)) for key in keys]

    def available_categories(self, records: Sequence[TrainingRecord]) -> list[CourseCategory]:
        present = {infer_category(record.course) for record in records}
        return [category for category in CourseCategory if category in present]

    def elearning_courses(self, records: Sequence[TrainingRecord]) -> list[str]:
        return sorted({record.course for record in records if is_elearning(record.course)})

    def webinar_records(self, records: Sequence[TrainingRecord]) -> list[TrainingRecord]:
        return [record for record in records if infer_category(record.course) is CourseCategory.WEBINAR]
