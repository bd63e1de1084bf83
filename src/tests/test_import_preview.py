"""Tests for the import issue and preview types."""

from paintmix.services.import_preview import ImportIssue
from paintmix.services.schema_validation_service import FieldError


class TestImportIssue:
    def test_field_keyword_with_default_values(self):
        issue = ImportIssue("colors", 3, "Field is required", field="code")

        assert issue.field == "code"
        assert issue.message_values == {}
        assert issue.to_dict() == {
            "table": "colors",
            "row": 3,
            "message": "Field is required",
            "field": "code",
        }

    def test_message_values_not_shared(self):
        first = ImportIssue("brands", 1, "a")
        second = ImportIssue("brands", 2, "b")
        first.message_values["max"] = 1

        assert second.message_values == {}

    def test_table_level_issue_omits_optional_keys(self):
        issue = ImportIssue("brands", 0, "Missing columns: name")
        assert issue.to_dict() == {"table": "brands", "row": 0, "message": "Missing columns: name"}
        assert issue.describe() == "brands row 0: Missing columns: name"

    def test_from_field_error(self):
        error = FieldError(4, "parts", "Bad", "validation.parts.precision", {"value": "0.00001"})
        issue = ImportIssue.from_field_error("components", error)

        assert issue.to_dict() == {
            "table": "components",
            "row": 4,
            "message": "Bad",
            "field": "parts",
            "messageKey": "validation.parts.precision",
            "messageValues": {"value": "0.00001"},
        }
        assert issue.describe() == "components row 4, field `parts`: Bad"
