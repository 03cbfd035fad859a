"""
lms_insights/services/engagement_ingestion_service.py

Service layer for StoryLane demo-view exports.

Columns are positional (the header row is discarded):

    0 demo  1 link  2 last view  3 total time  4 steps completed
    5 percent complete  6 opened CTA  7+ country

``percent_complete`` is stored on the 0-100 scale. StoryLane writes it as a
fraction, so every value is multiplied by 100 unless the cell itself carries
a ``%`` suffix, in which case it is already a percentage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from lms_insights.domain.engagement import EngagementRecord
from lms_insights.domain.ingestion import IngestionSummary
from lms_insights.logging_utils import log_event
from lms_insights.parsing.tokenizer import CSVTokenizer
from lms_insights.validators.lms_row_validator import parse_float_prefix, parse_int_prefix

logger = logging.getLogger(__name__)

NO_CTA = "-"


def parse_percent_complete(value: str | None) -> float | None:
    """
    Convert a StoryLane percent cell to the 0-100 scale.

    ``"0.5"`` -> 50.0, ``"50%"`` -> 50.0. Each cell is converted on its own.
    """

    fraction = parse_float_prefix(value)
    if fraction is None:
        return None
    if (value or "").strip().endswith("%"):
        return fraction
    return fraction * 100.0


def is_cta_clicked(opened_cta: str | None) -> bool:
    """
    True when the CTA column holds a link, i.e. is not ``-``/blank and contains ``http``.
    """

    value = (opened_cta or "").strip()
    return value not in ("", NO_CTA) and "http" in value


@dataclass(frozen=True)
class EngagementIngestionResult:
    """
    Canonical engagement collection plus the run summary.

    ``source_available`` is False when the export file does not exist; that
    is a supported state with zero records, not an error.
    """

    records: list[EngagementRecord]
    summary: IngestionSummary
    source_available: bool = True


class EngagementIngestionService:
    """
    Builds EngagementRecords from StoryLane CSV text.
    """

    def __init__(self, *, tokenizer: CSVTokenizer | None = None) -> None:
        self._tokenizer = tokenizer or CSVTokenizer()

    def build(self, raw_text: str) -> list[EngagementRecord]:
        """
        Return the canonical records of ``raw_text``; bad rows are skipped.
        """

        return self.ingest_text(raw_text).records

    def ingest_text(self, text: str) -> EngagementIngestionResult:
        table = self._tokenizer.tokenize_engagement(text.lstrip("\ufeff"))
        records = [self._to_record(fields) for fields in table.rows]

        summary = IngestionSummary(
            rows_processed=len(records),
            rows_failed=table.skipped_rows,
            strategy=table.strategy,
        )
        log_event(
            logger,
            logging.INFO,
            "engagement_ingestion_finished",
            records=len(records),
            skipped=table.skipped_rows,
            strategy=table.strategy,
        )
        return EngagementIngestionResult(records=records, summary=summary)

    def ingest_bytes(self, data: bytes) -> EngagementIngestionResult:
        return self.ingest_text(data.decode("utf-8-sig", errors="replace"))

    def ingest_file(self, path: Path) -> EngagementIngestionResult:
        """
        Read and ingest the export at ``path``; a missing file yields no records.
        """

        path = Path(path)
        if not path.exists():
            logger.warning(
                "StoryLane export %r was not found; engagement analytics will be empty.",
                str(path),
            )
            return EngagementIngestionResult(
                records=[],
                summary=IngestionSummary(rows_processed=0, rows_failed=0),
                source_available=False,
            )
        return self.ingest_bytes(path.read_bytes())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _to_record(fields: list[str]) -> EngagementRecord:
        steps = parse_int_prefix(fields[4])
        percent = parse_percent_complete(fields[5])
        opened_cta = fields[6].strip()
        return EngagementRecord(
            demo=fields[0],
            link=fields[1],
            last_view=fields[2],
            total_time=fields[3],
            steps_completed=steps if steps is not None else 0,
            percent_complete=percent if percent is not None else 0.0,
            opened_cta=opened_cta,
            cta_clicked=is_cta_clicked(opened_cta),
            country=fields[7],
        )


@lru_cache(maxsize=1)
def get_engagement_ingestion_service() -> EngagementIngestionService:
    return EngagementIngestionService()
