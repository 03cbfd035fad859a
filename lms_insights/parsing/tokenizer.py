"""
lms_insights/parsing/tokenizer.py

Line-oriented CSV tokenizer with a layered delimiter fallback.

``CSVTokenizer.tokenize`` splits every non-blank line on one delimiter and
returns all rows, header included. ``CSVTokenizer.tokenize_engagement`` is
the StoryLane entry point: it tries comma, tab and semicolon splitting in
turn, then a marker-based "flexible" parser, and keeps the first layer that
yields a usable row for the majority of data lines. Layers are never merged.
"""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator

from lms_insights.config import EngagementParsingSettings, get_engagement_parsing_settings
from lms_insights.logging_utils import log_event

logger = logging.getLogger(__name__)

STRATEGY_BY_DELIMITER: dict[str, str] = {
    ",": "comma",
    "\t": "tab",
    ";": "semicolon",
}
FLEXIBLE_STRATEGY = "flexible"
NO_STRATEGY = "none"

UNKNOWN_FIELD = "unknown"

_ANY_DELIMITER = re.compile(r"[,;\t]")
_STEPS_AND_PERCENT = re.compile(
    r"(?:^|[,;\t])\s*(\d+)\s*[,;\t]\s*(\d+(?:\.\d+)?)\s*(?=[,;\t]|$)"
)


def normalize_line_endings(text: str) -> str:
    """
    Convert CRLF and bare CR line endings to LF.
    """

    return text.replace("\r\n", "\n").replace("\r", "\n")


@dataclass(frozen=True)
class TokenizedTable:
    """
    Result of the layered StoryLane tokenization.

    ``rows`` holds only valid data rows, each reconciled to exactly
    ``min_fields`` fields. ``data_row_count`` counts every non-blank line
    after the header, valid or not.
    """

    header: list[str]
    rows: list[list[str]]
    strategy: str
    delimiter: str | None
    data_row_count: int
    layer_yields: dict[str, int] = field(default_factory=dict)

    @property
    def skipped_rows(self) -> int:
        return self.data_row_count - len(self.rows)


class CSVTokenizer:
    """
    Turns raw CSV text into field lists.
    """

    def __init__(self, *, settings: EngagementParsingSettings | None = None) -> None:
        self._settings = settings or get_engagement_parsing_settings()
        markers = sorted(self._settings.country_markers, key=len, reverse=True)
        self._country_pattern = (
            re.compile("|".join(re.escape(marker) for marker in markers), re.IGNORECASE)
            if markers
            else None
        )

    @property
    def min_fields(self) -> int:
        return self._settings.min_fields

    def iter_rows(self, text: str, delimiter: str = ",") -> Iterator[tuple[int, list[str]]]:
        """
        Yield ``(line_number, fields)`` for every non-blank line.

        Line numbers are 1-based and count blank lines, so they point back
        into the source file. Lines the csv module rejects are logged and
        skipped.
        """

        for line_number, raw_line in enumerate(normalize_line_endings(text).split("\n"), start=1):
            line = raw_line.strip()
            if not line:
                continue
            fields = self._split_line(line, delimiter, line_number)
            if fields is not None:
                yield line_number, fields

    def tokenize(self, text: str, delimiter: str = ",") -> list[list[str]]:
        """
        Split ``text`` into rows of fields. The header row is returned too.
        """

        return [fields for _, fields in self.iter_rows(text, delimiter)]

    def reconcile(self, fields: list[str], delimiter: str) -> list[str] | None:
        """
        Fold surplus trailing fields into the last (country) column.

        Returns ``None`` when the row has fewer than ``min_fields`` fields.
        """

        required = self._settings.min_fields
        if len(fields) < required:
            return None
        if len(fields) == required:
            return list(fields)
        head = fields[: required - 1]
        return [*head, delimiter.join(fields[required - 1 :])]

    def tokenize_engagement(self, text: str) -> TokenizedTable:
        """
        Tokenize a StoryLane export with the layered delimiter fallback.
        """

        normalized = normalize_line_endings(text)
        lines = [line.strip() for line in normalized.split("\n")]
        non_blank = [line for line in lines if line]
        if len(non_blank) <= 1:
            logger.error("Engagement CSV has too few lines: %d", len(non_blank))
            return TokenizedTable(
                header=[],
                rows=[],
                strategy=NO_STRATEGY,
                delimiter=None,
                data_row_count=max(0, len(non_blank) - 1),
            )

        header_line, data_lines = non_blank[0], non_blank[1:]
        data_row_count = len(data_lines)
        layer_yields: dict[str, int] = {}
        fallback: TokenizedTable | None = None

        for delimiter in self._settings.fallback_delimiters:
            strategy = STRATEGY_BY_DELIMITER.get(delimiter, repr(delimiter))
            rows: list[list[str]] = []
            for offset, line in enumerate(data_lines, start=2):
                fields = self._split_line(line, delimiter, offset)
                if fields is None:
                    continue
                reconciled = self.reconcile(fields, delimiter)
                if reconciled is not None:
                    rows.append(reconciled)

            layer_yields[strategy] = len(rows)
            log_event(
                logger,
                logging.INFO,
                "engagement_tokenizer_layer",
                strategy=strategy,
                valid_rows=len(rows),
                data_rows=data_row_count,
            )
            candidate = TokenizedTable(
                header=self._split_line(header_line, delimiter, 1) or [],
                rows=rows,
                strategy=strategy,
                delimiter=delimiter,
                data_row_count=data_row_count,
                layer_yields=dict(layer_yields),
            )
            if self._is_majority(len(rows), data_row_count):
                return candidate
            if rows and fallback is None:
                fallback = candidate

        flexible_rows = self._parse_flexible(normalized, header_line, data_lines)
        layer_yields[FLEXIBLE_STRATEGY] = len(flexible_rows)
        log_event(
            logger,
            logging.INFO,
            "engagement_tokenizer_layer",
            strategy=FLEXIBLE_STRATEGY,
            valid_rows=len(flexible_rows),
            data_rows=data_row_count,
        )
        flexible = TokenizedTable(
            header=[header_line],
            rows=flexible_rows,
            strategy=FLEXIBLE_STRATEGY,
            delimiter=None,
            data_row_count=data_row_count,
            layer_yields=dict(layer_yields),
        )
        if self._is_majority(len(flexible_rows), data_row_count):
            return flexible
        if fallback is not None:
            return fallback
        if flexible_rows:
            return flexible

        logger.error("No tokenizer layer produced engagement rows; data_rows=%d", data_row_count)
        return TokenizedTable(
            header=[header_line],
            rows=[],
            strategy=NO_STRATEGY,
            delimiter=None,
            data_row_count=data_row_count,
            layer_yields=dict(layer_yields),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _is_majority(valid: int, total: int) -> bool:
        return valid > 0 and valid * 2 > total

    @staticmethod
    def _split_line(line: str, delimiter: str, line_number: int) -> list[str] | None:
        try:
            return next(csv.reader([line], delimiter=delimiter), None)
        except csv.Error as exc:
            logger.warning("Skipping malformed CSV line=%d: %s", line_number, exc)
            return None

    def _parse_flexible(
        self,
        content: str,
        header_line: str,
        data_lines: list[str],
    ) -> list[list[str]]:
        """
        Last-resort parser keyed on recognizable content.

        Only attempted when the header looks like a StoryLane export. Each
        line yields a row when a demo name, an integer/decimal field pair
        (steps, percent) and a known country name can all be found.
        """

        if _ANY_DELIMITER.search(content) is None:
            logger.error("Content does not appear to be delimited text")
            return []

        header = header_line.lower()
        has_demo = "demo" in header
        has_last_view = "last view" in header or "lastview" in header
        has_steps = "steps" in header
        if not (has_demo and has_last_view and has_steps) or self._country_pattern is None:
            logger.info(
                "Flexible parsing skipped: header not recognized demo=%s last_view=%s steps=%s",
                has_demo,
                has_last_view,
                has_steps,
            )
            return []

        rows: list[list[str]] = []
        for line in data_lines:
            if len(line) < 10:
                continue
            boundary = _ANY_DELIMITER.search(line)
            if boundary is None or boundary.start() == 0:
                continue
            demo = line[: boundary.start()].strip()
            numbers = _STEPS_AND_PERCENT.search(line)
            country = self._country_pattern.search(line)
            if not demo or numbers is None or country is None:
                continue
            rows.append(
                [
                    demo,
                    UNKNOWN_FIELD,
                    UNKNOWN_FIELD,
                    UNKNOWN_FIELD,
                    numbers.group(1),
                    numbers.group(2),
                    UNKNOWN_FIELD,
                    country.group(0),
                ]
            )
        return rows
