"""
lms_insights/validators/lms_row_validator.py

Row-level parsing and defaulting for normalized LMS rows.

Only a missing course rejects a row. Every other field falls back to a
default: enrollment date to "now", status to Not Started, numbers to 0,
quiz score and milestone dates to ``None``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from lms_insights.domain.ingestion import RowValidationError
from lms_insights.domain.training import EnrollmentStatus, TrainingRecord
from lms_insights.parsing.dates import parse_date

_FLOAT_PREFIX = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_INT_PREFIX = re.compile(r"^[-+]?\d+")


def _status_key(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


_STATUS_LOOKUP: dict[str, EnrollmentStatus] = {
    _status_key(status.value): status for status in EnrollmentStatus
}


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


def parse_float_prefix(value: Any) -> float | None:
    """
    Parse the leading number of ``value`` (``"45%"`` -> 45.0).
    """

    if value is None:
        return None
    match = _FLOAT_PREFIX.match(str(value).strip())
    if match is None:
        return None
    return float(match.group(0))


def parse_int_prefix(value: Any) -> int | None:
    """
    Parse the leading integer of ``value`` (``"12.7"`` -> 12).
    """

    if value is None:
        return None
    match = _INT_PREFIX.match(str(value).strip())
    if match is None:
        return None
    return int(match.group(0))


def parse_status(value: Any) -> EnrollmentStatus | None:
    """
    Match status text ignoring case and spacing; ``None`` if unrecognized.
    """

    if value is None:
        return None
    return _STATUS_LOOKUP.get(_status_key(str(value)))


class LMSRowValidator:
    """
    Validates and parses one canonical LMS row into a ``TrainingRecord``.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utc_now

    def is_completely_empty_row(self, row: Mapping[str, Any]) -> bool:
        """
        Return True when all values in the row are empty or whitespace.
        """

        return all(self._is_blank(value) for value in row.values())

    def validate_mapped_row(
        self,
        *,
        mapped_row: Mapping[str, str | None],
        row_number: int,
    ) -> tuple[TrainingRecord | None, list[RowValidationError]]:
        """
        Validate and parse one canonical mapped row.
        """

        course_raw = mapped_row.get("course")
        if self._is_blank(course_raw):
            return None, [
                RowValidationError(
                    row_number=row_number,
                    column="course",
                    message="Required value is missing.",
                    value=self._stringify_value(course_raw),
                )
            ]

        enrollment_date = parse_date(mapped_row.get("enrollmentDate"))
        defaulted = enrollment_date is None
        if enrollment_date is None:
            enrollment_date = self._clock()

        status = parse_status(mapped_row.get("status")) or EnrollmentStatus.NOT_STARTED
        progress = parse_float_prefix(mapped_row.get("progressPercentage"))
        time_spent = parse_int_prefix(mapped_row.get("timeSpentMinutes"))

        quiz_raw = mapped_row.get("quizScore")
        quiz_score = None if self._is_blank(quiz_raw) else parse_float_prefix(quiz_raw)

        return (
            TrainingRecord(
                course=str(course_raw),
                enrollment_date=enrollment_date,
                started_date=parse_date(mapped_row.get("startedDate")),
                completion_date=parse_date(mapped_row.get("completionDate")),
                status=status,
                progress_percentage=progress if progress is not None else 0.0,
                time_spent_minutes=time_spent if time_spent is not None else 0,
                quiz_score=quiz_score,
                centre_number=self._parse_optional_string(mapped_row.get("centreNumber")),
                centre_country=self._parse_optional_string(mapped_row.get("centreCountry")),
                enrollment_date_defaulted=defaulted,
            ),
            [],
        )

    @staticmethod
    def _parse_optional_string(value: str | None) -> str:
        return "" if value is None else str(value)

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        return str(value).strip() == ""

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)
