"""
lms_insights/schemas/filters.py

User-selected view criteria for the LMS and StoryLane dashboards.

Every dimension defaults to "no restriction". Field names accept both
snake_case and the camelCase keys used by the dashboard ("startMonth").
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from lms_insights.domain.training import CourseCategory

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_UNSET_MARKERS = {"", "all"}

CountrySelector = Literal["all", "uk", "international"]
QualificationSelector = Literal["all", "vq", "gq"]


class _BaseFilter(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    start_month: str | None = None
    end_month: str | None = None
    categories: tuple[CourseCategory, ...] = ()
    country: CountrySelector = "all"
    qualification_type: QualificationSelector = "all"
    centres: tuple[str, ...] = ()
    search: str = ""

    @field_validator("start_month", "end_month", mode="before")
    @classmethod
    def _validate_month(cls, value: object) -> object:
        if value is None:
            return None
        text = str(value).strip()
        if text.lower() in _UNSET_MARKERS:
            return None
        if not _MONTH_PATTERN.match(text):
            raise ValueError("Month bounds must use the YYYY-MM format.")
        return text

    @field_validator("country", "qualification_type", mode="before")
    @classmethod
    def _lowercase_selector(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("centres", mode="before")
    @classmethod
    def _drop_blank_entries(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return value

    @model_validator(mode="after")
    def _check_month_order(self) -> "_BaseFilter":
        if self.start_month and self.end_month and self.start_month > self.end_month:
            raise ValueError("start_month must not be after end_month.")
        return self

    def month_in_range(self, key: str) -> bool:
        """Inclusive ``YYYY-MM`` comparison; an absent bound is open."""
        if self.start_month is not None and key < self.start_month:
            return False
        if self.end_month is not None and key > self.end_month:
            return False
        return True

    @property
    def has_time_range(self) -> bool:
        return self.start_month is not None or self.end_month is not None


class FilterSpecification(_BaseFilter):
    """
    Filter state for LMS training records.

    ``course`` narrows eLearning records to one exact title and leaves
    webinars and recordings untouched. ``courses`` is an exact-title
    allow-list applied to every record.
    """

    course: str | None = None
    courses: tuple[str, ...] = ()

    @field_validator("course", mode="before")
    @classmethod
    def _unset_course(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in _UNSET_MARKERS:
            return None
        return value


class EngagementFilterSpecification(_BaseFilter):
    """
    Filter state for StoryLane engagement records.

    The time range applies to the month of ``last_view``. ``demo_type`` is a
    substring match on the demo name; ``demos`` is an exact allow-list.
    """

    demo_type: str | None = None
    demos: tuple[str, ...] = ()

    @field_validator("demo_type", mode="before")
    @classmethod
    def _unset_demo_type(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in _UNSET_MARKERS:
            return None
        return value
