"""
lms_insights/validators/mapping_validator.py

Required-column check for a resolved LMS header mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class MappingErrorDetail:
    """
    One required canonical field that no LMS header resolved to.
    """

    code: str
    message: str
    canonical_field: str | None = None
    context: dict[str, Any] | None = None


class SchemaMappingError(ValueError):
    """
    Raised when the LMS header row lacks a required column.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
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


class MappingValidator:
    def __init__(self, *, required_fields: Sequence[str]) -> None:
        self._required_fields = tuple(required_fields)

    def validate(self, *, mapping: Mapping[str, str], source_headers: Sequence[str]) -> None:
        missing = [name for name in self._required_fields if name not in mapping]
        if not missing:
            return
        raise SchemaMappingError(
            message=f"LMS header mapping failed. Missing required fields: {', '.join(missing)}.",
            errors=[
                MappingErrorDetail(
                    code="required_field_unmapped",
                    message=f"No column in the header row resolves to {name!r}.",
                    canonical_field=name,
                    context={"source_headers": list(source_headers)},
                )
                for name in missing
            ],
        )
