"""
lms_insights/domain package marker.
"""

from lms_insights.domain.engagement import EngagementRecord
from lms_insights.domain.ingestion import IngestionSummary, RowValidationError
from lms_insights.domain.training import CourseCategory, EnrollmentStatus, TrainingRecord

__all__ = [
    "CourseCategory",
    "EngagementRecord",
    "EnrollmentStatus",
    "IngestionSummary",
    "RowValidationError",
    "TrainingRecord",
]
