"""
lms_insights/validators package marker.
"""

from lms_insights.validators.lms_row_validator import LMSRowValidator
from lms_insights.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError

__all__ = [
    "LMSRowValidator",
    "MappingErrorDetail",
    "MappingValidator",
    "SchemaMappingError",
]
