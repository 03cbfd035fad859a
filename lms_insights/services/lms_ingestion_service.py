"""
lms_insights/services/lms_ingestion_service.py

Service layer for LMS export ingestion.

Pipeline per file:

    1. CSVTokenizer: split text into header + field rows
    2. SchemaMapper: rename header variants to canonical fields
    3. LMSRowValidator: parse/default each row into a TrainingRecord

Rows without a course are dropped and reported in the IngestionSummary;
they never abort the run. File-level problems (unreadable source, missing
header, no course column, zero usable rows) raise an ``LMSIngestionError``
subclass so the caller can show an error with a retry path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Sequence

from lms_insights.config import get_dashboard_settings
from lms_insights.domain.ingestion import IngestionSummary, RowValidationError
from lms_insights.domain.training import TrainingRecord
from lms_insights.mappers.schema_mapper import MappingResolution, SchemaMapper
from lms_insights.parsing.tokenizer import CSVTokenizer
from lms_insights.validators.lms_row_validator import LMSRowValidator
from lms_insights.validators.mapping_validator import MappingErrorDetail, SchemaMappingError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LMSIngestionError(RuntimeError):
    """
    Base class for file-level LMS ingestion failures.
    """


class LMSSourceUnavailableError(LMSIngestionError):
    """
    Raised when the LMS export cannot be read at all.
    """


class LMSHeaderValidationError(LMSIngestionError, ValueError):
    """
    Raised when the LMS export has no usable header row or bad encoding.
    """


class LMSSchemaMappingError(LMSHeaderValidationError):
    """
    Raised when the header row lacks a required column, with structured details.
    """

    def __init__(self, *, message: str, errors: list[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, object]:
        return {
            "message": str(self),
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "canonical_field": error.canonical_field,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


class LMSEmptyDatasetError(LMSIngestionError):
    """
    Raised when a readable LMS export yields zero usable records.
    """

    def __init__(self, message: str, *, summary: IngestionSummary) -> None:
        super().__init__(message)
        self.summary = summary


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LMSIngestionResult:
    """
    Canonical LMS collection plus the run summary.
    """

    records: list[TrainingRecord]
    summary: IngestionSummary


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class LMSIngestionService:
    """
    Coordinates LMS tokenizing, header mapping and row validation.
    """

    def __init__(
        self,
        *,
        max_validation_errors: int,
        log_validation_errors: bool,
        tokenizer: CSVTokenizer | None = None,
        mapper: SchemaMapper | None = None,
        validator: LMSRowValidator | None = None,
    ) -> None:
        self._max_validation_errors = max(1, max_validation_errors)
        self._log_validation_errors = log_validation_errors
        self._tokenizer = tokenizer or CSVTokenizer()
        self._mapper = mapper or SchemaMapper()
        self._validator = validator or LMSRowValidator()

    def build(
        self,
        raw_rows: Sequence[Sequence[str]],
        header_row: Sequence[str],
    ) -> list[TrainingRecord]:
        """
        Turn tokenized data rows into canonical records, in input order.

        ``raw_rows`` must not include the header. Duplicate enrollments are
        kept; each row is a distinct activity entry.
        """

        numbered = [(index, list(fields)) for index, fields in enumerate(raw_rows, start=2)]
        records, _ = self._build(numbered, header_row)
        return records

    def ingest_text(self, text: str) -> LMSIngestionResult:
        """
        Ingest the full text of an LMS export.
        """

        rows = list(self._tokenizer.iter_rows(text.lstrip("\ufeff")))
        if not rows:
            raise LMSHeaderValidationError("CSV header row is missing.")

        _, header_row = rows[0]
        records, summary = self._build(rows[1:], header_row)
        logger.info(
            "LMS ingestion finished records=%d rows_failed=%d",
            summary.rows_processed,
            summary.rows_failed,
        )
        if not records:
            raise LMSEmptyDatasetError(
                "LMS export contains no rows with a course name.",
                summary=summary,
            )
        return LMSIngestionResult(records=records, summary=summary)

    def ingest_bytes(self, data: bytes) -> LMSIngestionResult:
        """
        Decode and ingest an uploaded LMS export.
        """

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise LMSHeaderValidationError("CSV must be UTF-8 encoded.") from exc
        return self.ingest_text(text)

    def ingest_file(self, path: Path) -> LMSIngestionResult:
        """
        Read and ingest the LMS export at ``path``.
        """

        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise LMSSourceUnavailableError(f"LMS export could not be read: {path}") from exc
        return self.ingest_bytes(data)

    # ------------------------------------------------------------------
    # Ingestion internals
    # ------------------------------------------------------------------

    def _build(
        self,
        numbered_rows: Sequence[tuple[int, list[str]]],
        header_row: Sequence[str],
    ) -> tuple[list[TrainingRecord], IngestionSummary]:
        headers = [header.strip() for header in header_row]
        mapping = self._resolve_mapping(headers)

        records: list[TrainingRecord] = []
        rows_failed = 0
        captured_errors: list[RowValidationError] = []

        for row_number, fields in numbered_rows:
            raw_row = self._to_mapping(headers, fields)
            if self._validator.is_completely_empty_row(raw_row):
                rows_failed += 1
                self._record_error(
                    captured_errors,
                    RowValidationError(
                        row_number=row_number,
                        column=None,
                        message="Completely empty rows are not allowed.",
                        value=None,
                    ),
                )
                continue

            mapped_row = self._mapper.map_row(raw_row=raw_row, mapping=mapping)
            record, row_errors = self._validator.validate_mapped_row(
                mapped_row=mapped_row,
                row_number=row_number,
            )
            if record is None:
                rows_failed += 1
                for error in row_errors:
                    self._record_error(captured_errors, error)
                continue
            records.append(record)

        summary = IngestionSummary(
            rows_processed=len(records),
            rows_failed=rows_failed,
            validation_errors=captured_errors,
        )
        return records, summary

    def _resolve_mapping(self, headers: Sequence[str]) -> MappingResolution:
        try:
            return self._mapper.resolve_mapping(headers)
        except SchemaMappingError as exc:
            raise LMSSchemaMappingError(message=exc.message, errors=list(exc.errors)) from exc

    @staticmethod
    def _to_mapping(headers: Sequence[str], fields: Sequence[str]) -> dict[str, str | None]:
        row: dict[str, str | None] = {}
        for index, header in enumerate(headers):
            if not header or header in row:
                continue
            row[header] = fields[index] if index < len(fields) else None
        return row

    def _record_error(
        self,
        captured_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "LMS validation error row=%s column=%s message=%s value=%r",
                error.row_number,
                error.column,
                error.message,
                error.value,
            )

        if len(captured_errors) < self._max_validation_errors:
            captured_errors.append(error)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_lms_ingestion_service() -> LMSIngestionService:
    """
    Build and cache the LMS ingestion service with env-driven settings.
    """

    settings = get_dashboard_settings()
    return LMSIngestionService(
        max_validation_errors=settings.max_validation_errors,
        log_validation_errors=settings.log_validation_errors,
    )
