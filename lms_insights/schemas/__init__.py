"""
lms_insights/schemas package marker.
"""

from lms_insights.schemas.filters import EngagementFilterSpecification, FilterSpecification

__all__ = [
    "EngagementFilterSpecification",
    "FilterSpecification",
]
