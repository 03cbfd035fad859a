"""
lms_insights/mappers/schema_mapper.py

Header normalization for LMS exports.

LMS exports arrive with display headers ("Enrollment Date (UTC TimeZone)"),
camelCase keys ("enrollmentDate") or snake_case keys ("enrollment_date").
``SchemaMapper`` resolves whichever variant is present onto the canonical
field set and drops every other column.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from lms_insights.validators.mapping_validator import MappingValidator

logger = logging.getLogger(__name__)

CANONICAL_FIELDS: tuple[str, ...] = (
    "course",
    "enrollmentDate",
    "startedDate",
    "completionDate",
    "status",
    "progressPercentage",
    "timeSpentMinutes",
    "quizScore",
    "centreNumber",
    "centreCountry",
)

REQUIRED_CANONICAL_FIELDS: tuple[str, ...] = ("course",)

DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "course": ("Course", "course", "course_name", "Course Name"),
    "enrollmentDate": (
        "Enrollment Date (UTC TimeZone)",
        "Enrollment Date",
        "enrollmentDate",
        "enrollment_date",
    ),
    "startedDate": (
        "Started Date (UTC TimeZone)",
        "Started Date",
        "startedDate",
        "started_date",
    ),
    "completionDate": (
        "Completion Date (UTC TimeZone)",
        "Completion Date",
        "completionDate",
        "completion_date",
    ),
    "status": ("Status", "status"),
    "progressPercentage": ("Progress %", "Progress", "progressPercentage", "progress"),
    "timeSpentMinutes": (
        "Time Spent(minutes)",
        "Time Spent (minutes)",
        "timeSpentMinutes",
        "time_spent",
    ),
    "quizScore": ("Quiz_score", "Quiz Score", "quizScore", "quiz_score"),
    "centreNumber": ("Centre Number", "centreNumber", "centre_number"),
    "centreCountry": ("Centre Country", "centreCountry", "centre_country"),
}


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.

    Case, spacing and punctuation are ignored, so ``"Quiz_score"``,
    ``"Quiz Score"`` and ``"quizScore"`` all normalize to ``"quizscore"``.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class MappingResolution:
    """
    Resolved source-header to canonical-field rename table.
    """

    canonical_to_source: dict[str, str]
    source_headers: tuple[str, ...]

    @property
    def dropped_headers(self) -> tuple[str, ...]:
        mapped = set(self.canonical_to_source.values())
        return tuple(header for header in self.source_headers if header not in mapped)


class SchemaMapper:
    """
    Resolves LMS header variants into canonical field names.
    """

    def __init__(
        self,
        *,
        aliases: Mapping[str, Sequence[str]] | None = None,
        validator: MappingValidator | None = None,
    ) -> None:
        self._aliases: dict[str, tuple[str, ...]] = {
            canonical: tuple(values)
            for canonical, values in (aliases or DEFAULT_COLUMN_ALIASES).items()
        }
        self._validator = validator or MappingValidator(
            required_fields=REQUIRED_CANONICAL_FIELDS,
        )

    def resolve_mapping(self, headers: Sequence[str]) -> MappingResolution:
        """
        Build the rename table for ``headers``.

        When two headers resolve to the same canonical field the first one
        wins. Raises ``SchemaMappingError`` when a required field is missing.
        """

        source_headers = tuple(header for header in headers if header and header.strip())
        normalized_header_lookup: dict[str, str] = {}
        for header in source_headers:
            key = normalize_header(header)
            if key and key not in normalized_header_lookup:
                normalized_header_lookup[key] = header

        resolved: dict[str, str] = {}
        used_headers: set[str] = set()
        for canonical_field in CANONICAL_FIELDS:
            match = self._find_alias_match(
                canonical_field=canonical_field,
                normalized_header_lookup=normalized_header_lookup,
            )
            if match is not None and match not in used_headers:
                resolved[canonical_field] = match
                used_headers.add(match)

        self._validator.validate(mapping=resolved, source_headers=source_headers)

        resolution = MappingResolution(
            canonical_to_source=resolved,
            source_headers=source_headers,
        )
        if resolution.dropped_headers:
            logger.debug("Dropping unmapped LMS columns: %s", list(resolution.dropped_headers))
        return resolution

    def map_row(
        self,
        *,
        raw_row: Mapping[str, str | None],
        mapping: MappingResolution,
    ) -> dict[str, str | None]:
        """
        Rename one row's keys to canonical names; unmapped keys are dropped.
        """

        return {
            canonical_field: raw_row.get(source_column)
            for canonical_field, source_column in mapping.canonical_to_source.items()
            if source_column in raw_row
        }

    def normalize(self, rows: Sequence[Mapping[str, str | None]]) -> list[dict[str, str | None]]:
        """
        Normalize every row using the header set of the first row.

        Row order and row count are preserved; no row is filtered here.
        """

        if not rows:
            return []
        mapping = self.resolve_mapping(list(rows[0].keys()))
        return [self.map_row(raw_row=row, mapping=mapping) for row in rows]

    def _find_alias_match(
        self,
        *,
        canonical_field: str,
        normalized_header_lookup: Mapping[str, str],
    ) -> str | None:
        candidates = (
            canonical_field,
            *self._aliases.get(canonical_field, ()),
        )
        for candidate in candidates:
            match = normalized_header_lookup.get(normalize_header(candidate))
            if match:
                return match
        return None
