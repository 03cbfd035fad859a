"""Shared failure code constants for dataset loading."""

LMS_SOURCE_MISSING = "lms_source_missing"
LMS_UNPARSEABLE = "lms_unparseable"
ENGAGEMENT_SOURCE_MISSING = "engagement_source_missing"
ENGAGEMENT_UNPARSEABLE = "engagement_unparseable"

CRITICAL_FAILURES = [
    LMS_SOURCE_MISSING,
    LMS_UNPARSEABLE,
]

OPTIONAL_FAILURES = [
    ENGAGEMENT_SOURCE_MISSING,
    ENGAGEMENT_UNPARSEABLE,
]
