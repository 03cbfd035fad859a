"""
lms_insights/domain/ingestion.py

Row-level error details and end-of-run summaries shared by both pipelines.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RowValidationError:
    """
    One CSV row validation error detail.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class IngestionSummary:
    """
    End-of-run ingestion summary.
    """

    rows_processed: int
    rows_failed: int
    validation_errors: list[RowValidationError] = field(default_factory=list)
    strategy: str | None = None
