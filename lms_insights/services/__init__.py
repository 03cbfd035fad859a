"""
lms_insights/services package marker.
"""

from lms_insights.services.engagement_analytics_service import EngagementAnalyticsService
from lms_insights.services.engagement_ingestion_service import (
    EngagementIngestionService,
    get_engagement_ingestion_service,
)
from lms_insights.services.lms_ingestion_service import (
    LMSEmptyDatasetError,
    LMSHeaderValidationError,
    LMSIngestionError,
    LMSIngestionService,
    LMSSchemaMappingError,
    LMSSourceUnavailableError,
    get_lms_ingestion_service,
)
from lms_insights.services.training_analytics_service import TrainingAnalyticsService
from lms_insights.services.filter_service import EngagementFilter, TrainingFilter
from lms_insights.services.dataset_loader import DashboardDataset, DatasetLoader

__all__ = [
    "DashboardDataset",
    "DatasetLoader",
    "EngagementAnalyticsService",
    "EngagementFilter",
    "EngagementIngestionService",
    "get_engagement_ingestion_service",
    "LMSEmptyDatasetError",
    "LMSHeaderValidationError",
    "LMSIngestionError",
    "LMSIngestionService",
    "LMSSchemaMappingError",
    "LMSSourceUnavailableError",
    "get_lms_ingestion_service",
    "TrainingAnalyticsService",
    "TrainingFilter",
]
