"""
lms_insights/parsing package marker.
"""

from lms_insights.parsing.dates import month_key, month_label, month_label_from_key, parse_date
from lms_insights.parsing.tokenizer import (
    CSVTokenizer,
    TokenizedTable,
    normalize_line_endings,
)

__all__ = [
    "CSVTokenizer",
    "TokenizedTable",
    "month_key",
    "month_label",
    "month_label_from_key",
    "normalize_line_endings",
    "parse_date",
]
