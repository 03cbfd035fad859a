"""
lms_insights/services/dataset_loader.py

Loads the LMS and StoryLane collections for one dashboard session.

The two pipelines are independent: ``load_all`` runs them concurrently and
joins both before returning, and a failure in one never prevents the other
from producing records. The LMS export is required, so its failures are
reported as a user-visible ``lms_error``; a missing or unreadable StoryLane
export simply yields an empty engagement collection.

Nothing is retried automatically. Calling ``load_all`` again, or supplying
file content through ``load_lms_text`` / ``load_engagement_text``, is
the retry path.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable

from lms_insights.config import DashboardSettings, get_dashboard_settings
from lms_insights.domain.engagement import EngagementRecord
from lms_insights.domain.ingestion import IngestionSummary
from lms_insights.domain.training import TrainingRecord
from lms_insights.failure_codes import (
    CRITICAL_FAILURES,
    ENGAGEMENT_SOURCE_MISSING,
    ENGAGEMENT_UNPARSEABLE,
    LMS_SOURCE_MISSING,
    LMS_UNPARSEABLE,
    OPTIONAL_FAILURES,
)
from lms_insights.logging_utils import log_event
from lms_insights.services.engagement_ingestion_service import (
    EngagementIngestionResult,
    EngagementIngestionService,
    get_engagement_ingestion_service,
)
from lms_insights.services.lms_ingestion_service import (
    LMSIngestionError,
    LMSIngestionResult,
    LMSIngestionService,
    LMSSourceUnavailableError,
    get_lms_ingestion_service,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardDataset:
    """
    Full, unfiltered canonical collections plus load diagnostics.
    """

    training_records: list[TrainingRecord] = field(default_factory=list)
    engagement_records: list[EngagementRecord] = field(default_factory=list)
    lms_summary: IngestionSummary | None = None
    engagement_summary: IngestionSummary | None = None
    lms_error: str | None = None
    failure_codes: tuple[str, ...] = ()

    @property
    def has_critical_failure(self) -> bool:
        return any(code in CRITICAL_FAILURES for code in self.failure_codes)


@dataclass(frozen=True)
class _LMSOutcome:
    records: list[TrainingRecord]
    summary: IngestionSummary | None
    error: str | None
    failure_code: str | None


@dataclass(frozen=True)
class _EngagementOutcome:
    records: list[EngagementRecord]
    summary: IngestionSummary | None
    failure_code: str | None


class DatasetLoader:
    """
    Runs both ingestion pipelines and assembles a ``DashboardDataset``.
    """

    def __init__(
        self,
        *,
        settings: DashboardSettings | None = None,
        lms_service: LMSIngestionService | None = None,
        engagement_service: EngagementIngestionService | None = None,
    ) -> None:
        self._settings = settings or get_dashboard_settings()
        self._lms_service = lms_service or get_lms_ingestion_service()
        self._engagement_service = engagement_service or get_engagement_ingestion_service()

    def load_all(self) -> DashboardDataset:
        """
        Load both configured exports concurrently.
        """

        lms_path = self._settings.lms_path
        engagement_path = self._settings.engagement_path
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="dataset-load") as executor:
            lms_future = executor.submit(self._load_lms, lms_path)
            engagement_future = executor.submit(self._load_engagement, engagement_path)
            lms = lms_future.result()
            engagement = engagement_future.result()

        dataset = self._assemble(lms, engagement)
        log_event(
            logger,
            logging.INFO,
            "dataset_loaded",
            training_records=len(dataset.training_records),
            engagement_records=len(dataset.engagement_records),
            failure_codes=list(dataset.failure_codes),
        )
        return dataset

    def load_lms_text(self, text: str, current: DashboardDataset | None = None) -> DashboardDataset:
        """
        Replace the LMS collection of ``current`` with user-supplied content.
        """

        lms = self._run_lms(lambda: self._lms_service.ingest_text(text))
        return self._replace_lms(current or DashboardDataset(), lms)

    def load_lms_bytes(self, data: bytes, current: DashboardDataset | None = None) -> DashboardDataset:
        lms = self._run_lms(lambda: self._lms_service.ingest_bytes(data))
        return self._replace_lms(current or DashboardDataset(), lms)

    def load_engagement_text(
        self,
        text: str,
        current: DashboardDataset | None = None,
    ) -> DashboardDataset:
        """
        Replace the StoryLane collection of ``current`` with user-supplied content.
        """

        engagement = self._run_engagement(lambda: self._engagement_service.ingest_text(text))
        return self._replace_engagement(current or DashboardDataset(), engagement)

    def load_engagement_bytes(
        self,
        data: bytes,
        current: DashboardDataset | None = None,
    ) -> DashboardDataset:
        engagement = self._run_engagement(lambda: self._engagement_service.ingest_bytes(data))
        return self._replace_engagement(current or DashboardDataset(), engagement)

    # ------------------------------------------------------------------
    # Pipeline runners
    # ------------------------------------------------------------------

    def _load_lms(self, path: Path) -> _LMSOutcome:
        outcome = self._run_lms(lambda: self._lms_service.ingest_file(path))
        log_event(
            logger,
            logging.INFO,
            "lms_pipeline_finished",
            path=path,
            records=len(outcome.records),
            failure_code=outcome.failure_code,
        )
        return outcome

    def _load_engagement(self, path: Path) -> _EngagementOutcome:
        outcome = self._run_engagement(lambda: self._engagement_service.ingest_file(path))
        log_event(
            logger,
            logging.INFO,
            "engagement_pipeline_finished",
            path=path,
            records=len(outcome.records),
            failure_code=outcome.failure_code,
        )
        return outcome

    @staticmethod
    def _run_lms(ingest: Callable[[], LMSIngestionResult]) -> _LMSOutcome:
        try:
            result = ingest()
        except LMSSourceUnavailableError as exc:
            logger.error("LMS export unavailable: %s", exc)
            return _LMSOutcome(records=[], summary=None, error=str(exc), failure_code=LMS_SOURCE_MISSING)
        except LMSIngestionError as exc:
            logger.error("LMS export could not be ingested: %s", exc)
            summary = getattr(exc, "summary", None)
            return _LMSOutcome(records=[], summary=summary, error=str(exc), failure_code=LMS_UNPARSEABLE)
        except Exception as exc:  # noqa: BLE001
            logger.warning("LMS pipeline failed unexpectedly: %s", exc)
            return _LMSOutcome(records=[], summary=None, error=str(exc), failure_code=LMS_UNPARSEABLE)
        return _LMSOutcome(records=result.records, summary=result.summary, error=None, failure_code=None)

    @staticmethod
    def _run_engagement(ingest: Callable[[], EngagementIngestionResult]) -> _EngagementOutcome:
        try:
            result = ingest()
        except Exception as exc:  # noqa: BLE001
            logger.warning("StoryLane export could not be ingested: %s", exc)
            return _EngagementOutcome(records=[], summary=None, failure_code=ENGAGEMENT_UNPARSEABLE)

        if not result.source_available:
            return _EngagementOutcome(
                records=[],
                summary=result.summary,
                failure_code=ENGAGEMENT_SOURCE_MISSING,
            )
        failure_code = None
        if not result.records and result.summary.rows_failed > 0:
            failure_code = ENGAGEMENT_UNPARSEABLE
        return _EngagementOutcome(records=result.records, summary=result.summary, failure_code=failure_code)

    @staticmethod
    def _assemble(lms: _LMSOutcome, engagement: _EngagementOutcome) -> DashboardDataset:
        failure_codes = [code for code in (lms.failure_code, engagement.failure_code) if code]
        return DashboardDataset(
            training_records=lms.records,
            engagement_records=engagement.records,
            lms_summary=lms.summary,
            engagement_summary=engagement.summary,
            lms_error=lms.error,
            failure_codes=tuple(failure_codes),
        )

    @staticmethod
    def _replace_lms(base: DashboardDataset, lms: _LMSOutcome) -> DashboardDataset:
        kept = [code for code in base.failure_codes if code in OPTIONAL_FAILURES]
        codes = [lms.failure_code, *kept] if lms.failure_code else kept
        dataset = replace(
            base,
            training_records=lms.records,
            lms_summary=lms.summary,
            lms_error=lms.error,
            failure_codes=tuple(codes),
        )
        log_event(
            logger,
            logging.INFO,
            "lms_reloaded",
            training_records=len(dataset.training_records),
            failure_codes=list(dataset.failure_codes),
        )
        return dataset

    @staticmethod
    def _replace_engagement(base: DashboardDataset, engagement: _EngagementOutcome) -> DashboardDataset:
        kept = [code for code in base.failure_codes if code in CRITICAL_FAILURES]
        codes = [*kept, engagement.failure_code] if engagement.failure_code else kept
        dataset = replace(
            base,
            engagement_records=engagement.records,
            engagement_summary=engagement.summary,
            failure_codes=tuple(codes),
        )
        log_event(
            logger,
            logging.INFO,
            "engagement_reloaded",
            engagement_records=len(dataset.engagement_records),
            failure_codes=list(dataset.failure_codes),
        )
        return dataset
