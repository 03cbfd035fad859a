"""
lms_insights/services/classification.py

Heuristic classification of free-text course, demo and country values.

Every aggregation and filter goes through these functions so that a course
is classified the same way everywhere.
"""

from __future__ import annotations

from typing import Final

from lms_insights.domain.training import CourseCategory

UK_COUNTRY_NAMES: Final[frozenset[str]] = frozenset({"uk", "united kingdom"})

VQ_MARKERS: Final[tuple[str, ...]] = ("pop", "btec", "cohort", "vq")

QUALIFICATION_VQ: Final[str] = "vq"
QUALIFICATION_GQ: Final[str] = "gq"

REGION_UK: Final[str] = "uk"
REGION_INTERNATIONAL: Final[str] = "international"


def infer_category(text: str | None) -> CourseCategory:
    """
    Classify a course or demo title.

    The webinar check runs before the recording check, so
    "Webinar Recording" is a Webinar. Blank text is Other.
    """

    lowered = (text or "").lower()
    if "webinar" in lowered:
        return CourseCategory.WEBINAR
    if "recording" in lowered:
        return CourseCategory.RECORDING
    if not lowered.strip():
        return CourseCategory.OTHER
    return CourseCategory.ELEARNING


def is_elearning(text: str | None) -> bool:
    """True when ``text`` is neither a webinar nor a recording."""
    return infer_category(text) not in (CourseCategory.WEBINAR, CourseCategory.RECORDING)


def is_uk(country: str | None) -> bool:
    return (country or "").strip().lower() in UK_COUNTRY_NAMES


def region_of(country: str | None) -> str:
    return REGION_UK if is_uk(country) else REGION_INTERNATIONAL


def qualification_type(text: str | None) -> str:
    """
    Return ``"vq"`` for vocational-qualification titles, else ``"gq"``.
    """

    lowered = (text or "").lower()
    if any(marker in lowered for marker in VQ_MARKERS):
        return QUALIFICATION_VQ
    return QUALIFICATION_GQ
