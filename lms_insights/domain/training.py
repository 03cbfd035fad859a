"""
lms_insights/domain/training.py

Canonical LMS enrollment records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EnrollmentStatus(str, Enum):
    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"
    NOT_STARTED = "Not Started"
    UNENROLLED = "Unenrolled"


class CourseCategory(str, Enum):
    WEBINAR = "Webinar"
    RECORDING = "Recording"
    ELEARNING = "eLearning"
    OTHER = "Other"


@dataclass(frozen=True)
class TrainingRecord:
    """
    One LMS enrollment/activity entry after normalization and defaulting.

    ``enrollment_date`` is never ``None``; when the source value could not be
    parsed it holds the ingestion wall-clock time and
    ``enrollment_date_defaulted`` is set.
    """

    course: str
    enrollment_date: datetime
    started_date: datetime | None = None
    completion_date: datetime | None = None
    status: EnrollmentStatus = EnrollmentStatus.NOT_STARTED
    progress_percentage: float = 0.0
    time_spent_minutes: int = 0
    quiz_score: float | None = None
    centre_number: str = ""
    centre_country: str = ""
    enrollment_date_defaulted: bool = False
