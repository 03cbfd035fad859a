from __future__ import annotations

import unittest

from lms_insights.mappers.schema_mapper import SchemaMapper, normalize_header
from lms_insights.validators.lms_row_validator import LMSRowValidator
from lms_insights.validators.mapping_validator import SchemaMappingError


class TestSchemaMapper(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = SchemaMapper()

    def test_normalize_header_ignores_case_and_punctuation(self) -> None:
        self.assertEqual(normalize_header("Quiz_score"), "quizscore")
        self.assertEqual(normalize_header(" Quiz Score "), "quizscore")
        self.assertEqual(normalize_header("quizScore"), "quizscore")

    def test_resolves_display_headers(self) -> None:
        headers = [
            "Course",
            "Enrollment Date (UTC TimeZone)",
            "Started Date (UTC TimeZone)",
            "Completion Date (UTC TimeZone)",
            "Status",
            "Progress %",
            "Time Spent(minutes)",
            "Quiz_score",
            "Centre Number",
            "Centre Country",
        ]

        resolution = self.mapper.resolve_mapping(headers)

        self.assertEqual(resolution.canonical_to_source["course"], "Course")
        self.assertEqual(
            resolution.canonical_to_source["enrollmentDate"],
            "Enrollment Date (UTC TimeZone)",
        )
        self.assertEqual(resolution.canonical_to_source["progressPercentage"], "Progress %")
        self.assertEqual(resolution.canonical_to_source["timeSpentMinutes"], "Time Spent(minutes)")
        self.assertEqual(resolution.canonical_to_source["quizScore"], "Quiz_score")
        self.assertEqual(resolution.dropped_headers, ())

    def test_resolves_snake_case_headers(self) -> None:
        resolution = self.mapper.resolve_mapping(["course_name", "enrollment_date", "time_spent"])

        self.assertEqual(resolution.canonical_to_source["course"], "course_name")
        self.assertEqual(resolution.canonical_to_source["enrollmentDate"], "enrollment_date")
        self.assertEqual(resolution.canonical_to_source["timeSpentMinutes"], "time_spent")

    def test_unrecognized_columns_are_dropped(self) -> None:
        resolution = self.mapper.resolve_mapping(["Course", "Learner Email", "Status"])
        mapped = self.mapper.map_row(
            raw_row={"Course": "Maths", "Learner Email": "a@b.c", "Status": "Completed"},
            mapping=resolution,
        )

        self.assertEqual(resolution.dropped_headers, ("Learner Email",))
        self.assertEqual(mapped, {"course": "Maths", "status": "Completed"})

    def test_first_matching_header_wins(self) -> None:
        resolution = self.mapper.resolve_mapping(["Course", "course_name"])

        self.assertEqual(resolution.canonical_to_source["course"], "Course")
        self.assertIn("course_name", resolution.dropped_headers)

    def test_missing_course_raises_structured_error(self) -> None:
        with self.assertRaises(SchemaMappingError) as ctx:
            self.mapper.resolve_mapping(["Status", "Enrollment Date"])

        missing = [
            error.canonical_field
            for error in ctx.exception.errors
            if error.code == "required_field_unmapped"
        ]
        self.assertEqual(missing, ["course"])

    def test_header_variants_normalize_identically(self) -> None:
        display_rows = [
            {"Course": "Maths", "Enrollment Date (UTC TimeZone)": "2024-05-07", "Status": "Completed"},
            {"Course": "Webinar: Intro", "Enrollment Date (UTC TimeZone)": "2024-06-01", "Status": ""},
        ]
        alias_rows = [
            {"course": "Maths", "enrollmentDate": "2024-05-07", "status": "Completed"},
            {"course": "Webinar: Intro", "enrollmentDate": "2024-06-01", "status": ""},
        ]

        self.assertEqual(self.mapper.normalize(display_rows), self.mapper.normalize(alias_rows))

    def test_normalize_preserves_row_count_and_order(self) -> None:
        rows = [{"Course": name} for name in ("b", "", "a")]

        normalized = self.mapper.normalize(rows)

        self.assertEqual([row["course"] for row in normalized], ["b", "", "a"])

    def test_outputs_validated_training_record(self) -> None:
        headers = ["Course", "Enrollment Date", "Status", "Progress %", "Centre Country"]
        row = {
            "Course": "Maths",
            "Enrollment Date": "2024-05-07",
            "Status": "in progress",
            "Progress %": "45%",
            "Centre Country": "UK",
        }

        resolution = self.mapper.resolve_mapping(headers)
        mapped_row = self.mapper.map_row(raw_row=row, mapping=resolution)

        record, errors = LMSRowValidator().validate_mapped_row(mapped_row=mapped_row, row_number=2)
        self.assertEqual(errors, [])
        assert record is not None
        self.assertEqual(record.course, "Maths")
        self.assertEqual(record.progress_percentage, 45.0)
        self.assertEqual(record.centre_country, "UK")


if __name__ == "__main__":
    unittest.main()
