"""
Test suite for the pattern validation engine.

Tests the DETERMINISTIC components — no network, no database, no flakiness.
Every rule is verified in isolation AND as part of the full pipeline.

Run: pytest tests/ -v
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest

from nyko_patterns.models import Severity
from nyko_patterns.pipeline import PatternValidationPipeline
from nyko_patterns.validators import (
    VALID_CATEGORIES,
    is_valid,
    validate_all,
    validate_classification,
    validate_code_coverage,
    validate_edge_cases,
    validate_files,
    validate_identity,
    validate_manual_tests,
    validate_stack,
    validate_text_fields,
)

PATTERNS_DIR = Path(__file__).parent.parent / "patterns"


# ─── Test Data ───────────────────────────────────────────────────────

VALID_PATTERN: dict[str, Any] = {
    "id": "clerk-nextjs",
    "version": "1.0.0",
    "updated_at": "2024-11-02",
    "author": "nyko",
    "status": "stable",
    "name": "Clerk Authentication for Next.js",
    "description": "Adds Clerk sign-in to a Next.js App Router project.",
    "category": "auth",
    "tags": ["nextjs", "clerk"],
    "difficulty": "beginner",
    "time_estimate": "15 minutes",
    "stack": {"required": [{"name": "next", "version": ">=14.0.0"}]},
    "files": [
        {"path": "middleware.ts", "action": "create", "description": "Route guard"},
        {"path": "app/layout.tsx", "action": "modify", "description": "Provider"},
    ],
    "code": {"middleware.ts": "export default clerkMiddleware();"},
    "edge_cases": [
        {"id": "a", "symptom": "s", "cause": "c", "solution": "x"},
        {"id": "b", "symptom": "s", "cause": "c", "solution": "x"},
        {"id": "c", "symptom": "s", "cause": "c", "solution": "x"},
    ],
    "validation": {"manual_test": ["Sign in and load /dashboard"]},
}


def _make_pattern(**overrides: Any) -> dict[str, Any]:
    """Factory for test patterns: a fully valid document plus overrides."""
    doc = copy.deepcopy(VALID_PATTERN)
    doc.update(overrides)
    return doc


def _without(*fields: str) -> dict[str, Any]:
    doc = _make_pattern()
    for name in fields:
        doc.pop(name)
    return doc


def _fields(findings) -> list[str]:
    return [f.field for f in findings]


# ═══════════════════════════════════════════════════════════════════════
# BASELINE
# ═══════════════════════════════════════════════════════════════════════


class TestBaseline:
    def test_valid_pattern_has_no_findings(self):
        assert validate_all(_make_pattern()) == []

    def test_empty_mapping_reports_every_required_field(self):
        findings = validate_all({})
        assert _fields(findings) == [
            "id",
            "version",
            "updated_at",
            "name",
            "description",
            "category",
            "tags",
            "difficulty",
            "stack.required",
            "files",
            "code",
            "edge_cases",
            "validation.manual_test",
        ]
        assert all(f.severity == Severity.ERROR for f in findings)

    def test_validation_is_idempotent(self):
        doc = _make_pattern(id="Bad_Id", version="1.0", tags=["one"])
        assert validate_all(doc) == validate_all(doc)

    def test_document_is_not_mutated(self):
        doc = _make_pattern(files=[{"path": "x.ts", "action": "create"}])
        before = copy.deepcopy(doc)
        validate_all(doc)
        assert doc == before


# ═══════════════════════════════════════════════════════════════════════
# IDENTITY: id / version / updated_at
# ═══════════════════════════════════════════════════════════════════════


class TestIdentity:
    def test_missing_id_is_error(self):
        findings = validate_identity(_without("id"))
        assert len(findings) == 1
        assert findings[0].field == "id"
        assert findings[0].severity == Severity.ERROR
        assert findings[0].code == "MISSING_REQUIRED_FIELD"

    def test_missing_id_makes_document_invalid(self):
        assert is_valid(validate_all(_without("id"))) is False

    def test_empty_id_counts_as_missing(self):
        findings = validate_identity(_make_pattern(id=""))
        assert findings[0].code == "MISSING_REQUIRED_FIELD"

    @pytest.mark.parametrize("pattern_id", ["a", "clerk-nextjs", "s3-upload-v2", "123"])
    def test_kebab_case_ids_pass(self, pattern_id):
        assert validate_identity(_make_pattern(id=pattern_id)) == []

    @pytest.mark.parametrize(
        "pattern_id",
        ["Clerk-nextjs", "clerk_nextjs", "-clerk", "clerk-", "clerk--nextjs", "clerk nextjs"],
    )
    def test_malformed_ids_fail_once(self, pattern_id):
        findings = validate_identity(_make_pattern(id=pattern_id))
        assert len(findings) == 1
        assert findings[0].field == "id"
        assert findings[0].code == "INVALID_ID_FORMAT"
        assert findings[0].severity == Severity.ERROR

    def test_trailing_newline_in_id_fails(self):
        findings = validate_identity(_make_pattern(id="clerk-nextjs\n"))
        assert _fields(findings) == ["id"]

    @pytest.mark.parametrize("version", ["1.0.0", "0.9.12", "10.20.30"])
    def test_semantic_versions_pass(self, version):
        assert validate_identity(_make_pattern(version=version)) == []

    @pytest.mark.parametrize("version", ["1.0", "v1.0.0", "1.0.0-beta", "1.0.0.0", 1.0])
    def test_malformed_versions_fail_once(self, version):
        findings = validate_identity(_make_pattern(version=version))
        assert len(findings) == 1
        assert findings[0].field == "version"
        assert findings[0].code == "INVALID_VERSION_FORMAT"

    def test_missing_updated_at(self):
        findings = validate_identity(_without("updated_at"))
        assert _fields(findings) == ["updated_at"]


# ═══════════════════════════════════════════════════════════════════════
# NAME / DESCRIPTION
# ═══════════════════════════════════════════════════════════════════════


class TestTextFields:
    def test_missing_name_and_description(self):
        findings = validate_text_fields(_without("name", "description"))
        assert _fields(findings) == ["name", "description"]
        assert all(f.severity == Severity.ERROR for f in findings)

    def test_long_name_is_warning(self):
        findings = validate_text_fields(_make_pattern(name="x" * 101))
        assert len(findings) == 1
        assert findings[0].severity == Severity.WARNING
        assert findings[0].code == "NAME_TOO_LONG"

    def test_name_at_limit_passes(self):
        assert validate_text_fields(_make_pattern(name="x" * 100)) == []

    def test_long_description_is_warning_only(self):
        """A 600-character description warns but the document stays valid."""
        doc = _make_pattern(description="d" * 600)
        findings = validate_all(doc)
        assert len(findings) == 1
        assert findings[0].field == "description"
        assert findings[0].severity == Severity.WARNING
        assert findings[0].message == "Description should be less than 500 characters"
        assert is_valid(findings) is True


# ═══════════════════════════════════════════════════════════════════════
# CATEGORY / TAGS / DIFFICULTY / STATUS
# ═══════════════════════════════════════════════════════════════════════


class TestClassification:
    def test_unknown_category_is_error(self):
        findings = validate_classification(_make_pattern(category="crm"))
        assert len(findings) == 1
        assert findings[0].field == "category"
        assert findings[0].code == "INVALID_CATEGORY"
        assert "auth, payments" in findings[0].message

    @pytest.mark.parametrize("category", VALID_CATEGORIES)
    def test_every_listed_category_passes(self, category):
        assert validate_classification(_make_pattern(category=category)) == []

    def test_category_is_case_sensitive(self):
        findings = validate_classification(_make_pattern(category="Auth"))
        assert _fields(findings) == ["category"]

    def test_non_string_category_does_not_raise(self):
        findings = validate_classification(_make_pattern(category=["auth"]))
        assert _fields(findings) == ["category"]

    def test_one_tag_fails(self):
        findings = validate_classification(_make_pattern(tags=["solo"]))
        assert len(findings) == 1
        assert findings[0].code == "INSUFFICIENT_TAGS"
        assert findings[0].details["count"] == 1

    def test_two_tags_pass(self):
        assert validate_classification(_make_pattern(tags=["a", "b"])) == []

    def test_missing_tags_fail(self):
        assert _fields(validate_classification(_without("tags"))) == ["tags"]

    def test_tags_as_string_fail(self):
        assert _fields(validate_classification(_make_pattern(tags="a, b"))) == ["tags"]

    def test_unknown_difficulty(self):
        findings = validate_classification(_make_pattern(difficulty="expert"))
        assert findings[0].code == "INVALID_DIFFICULTY"

    def test_missing_difficulty(self):
        findings = validate_classification(_without("difficulty"))
        assert findings[0].code == "MISSING_REQUIRED_FIELD"

    def test_absent_status_is_not_flagged(self):
        assert validate_classification(_without("status")) == []

    def test_unknown_status(self):
        findings = validate_classification(_make_pattern(status="alpha"))
        assert len(findings) == 1
        assert findings[0].field == "status"
        assert findings[0].code == "INVALID_STATUS"


# ═══════════════════════════════════════════════════════════════════════
# STACK
# ═══════════════════════════════════════════════════════════════════════


class TestStack:
    def test_missing_stack(self):
        assert _fields(validate_stack(_without("stack"))) == ["stack.required"]

    def test_empty_required_list(self):
        findings = validate_stack(_make_pattern(stack={"required": [], "optional": [{"name": "x"}]}))
        assert findings[0].code == "MISSING_STACK_REQUIREMENT"

    def test_stack_not_a_mapping(self):
        assert _fields(validate_stack(_make_pattern(stack=["next"]))) == ["stack.required"]


# ═══════════════════════════════════════════════════════════════════════
# FILES
# ═══════════════════════════════════════════════════════════════════════


class TestFiles:
    def test_missing_files(self):
        findings = validate_files(_without("files"))
        assert _fields(findings) == ["files"]
        assert findings[0].code == "MISSING_FILES"

    def test_empty_files(self):
        assert _fields(validate_files(_make_pattern(files=[]))) == ["files"]

    def test_each_entry_checked_with_index(self):
        doc = _make_pattern(
            files=[
                {"path": "a.ts", "action": "create"},
                {"action": "modify"},
                {"path": "c.ts", "action": "delete"},
                {"path": "d.ts"},
            ]
        )
        assert _fields(validate_files(doc)) == [
            "files[1].path",
            "files[2].action",
            "files[3].action",
        ]

    def test_entry_missing_both_path_and_action(self):
        findings = validate_files(_make_pattern(files=[{}]))
        assert _fields(findings) == ["files[0].path", "files[0].action"]

    def test_non_mapping_entry_does_not_raise(self):
        findings = validate_files(_make_pattern(files=["middleware.ts"]))
        assert _fields(findings) == ["files[0].path", "files[0].action"]

    @pytest.mark.parametrize("action", ["create", "modify", "append"])
    def test_valid_actions(self, action):
        doc = _make_pattern(files=[{"path": "x.ts", "action": action}])
        assert validate_files(doc) == []


# ═══════════════════════════════════════════════════════════════════════
# CODE ↔ FILES CROSS-CHECK
# ═══════════════════════════════════════════════════════════════════════


class TestCodeCoverage:
    def test_missing_code(self):
        findings = validate_code_coverage(_without("code"))
        assert _fields(findings) == ["code"]
        assert findings[0].code == "MISSING_CODE"

    def test_empty_code_map(self):
        assert _fields(validate_code_coverage(_make_pattern(code={}))) == ["code"]

    def test_created_file_without_code_fails(self):
        doc = _make_pattern(
            files=[{"path": "lib/x.ts", "action": "create"}],
            code={"other.ts": "..."},
        )
        findings = validate_code_coverage(doc)
        assert len(findings) == 1
        assert findings[0].field == "code.lib/x.ts"
        assert findings[0].message == "Missing code for file: lib/x.ts"
        assert findings[0].severity == Severity.ERROR

    def test_adding_the_code_key_fixes_it(self):
        doc = _make_pattern(
            files=[{"path": "lib/x.ts", "action": "create"}],
            code={"other.ts": "...", "lib/x.ts": "export {};"},
        )
        assert validate_code_coverage(doc) == []
        assert validate_all(doc) == []

    @pytest.mark.parametrize("action", ["modify", "append"])
    def test_modify_and_append_need_no_code(self, action):
        doc = _make_pattern(
            files=[{"path": "lib/x.ts", "action": action}],
            code={"other.ts": "..."},
        )
        assert validate_code_coverage(doc) == []

    def test_missing_code_map_suppresses_per_file_check(self):
        doc = _make_pattern(files=[{"path": "lib/x.ts", "action": "create"}], code=None)
        assert _fields(validate_code_coverage(doc)) == ["code"]

    def test_pathless_created_file_is_left_to_files_rule(self):
        doc = _make_pattern(files=[{"action": "create"}])
        assert validate_code_coverage(doc) == []
        assert "files[0].path" in _fields(validate_all(doc))


# ═══════════════════════════════════════════════════════════════════════
# EDGE CASES / MANUAL TESTS
# ═══════════════════════════════════════════════════════════════════════


class TestEdgeCasesAndManualTests:
    def test_two_edge_cases_fail(self):
        doc = _make_pattern(edge_cases=VALID_PATTERN["edge_cases"][:2])
        findings = validate_edge_cases(doc)
        assert len(findings) == 1
        assert findings[0].field == "edge_cases"
        assert findings[0].details["count"] == 2

    def test_three_edge_cases_pass(self):
        assert validate_edge_cases(_make_pattern()) == []

    def test_missing_validation_section(self):
        findings = validate_manual_tests(_without("validation"))
        assert _fields(findings) == ["validation.manual_test"]

    def test_empty_manual_test_list(self):
        doc = _make_pattern(validation={"manual_test": [], "automated_test": {"command": "npm test"}})
        assert _fields(validate_manual_tests(doc)) == ["validation.manual_test"]


# ═══════════════════════════════════════════════════════════════════════
# FULL VALIDATE_ALL
# ═══════════════════════════════════════════════════════════════════════


class TestValidateAll:
    """Verify validate_all() reports everything at once, in rule order."""

    def test_catches_all_known_issues(self):
        doc = _make_pattern(
            id="Bad_Id",
            version="v1",
            name="n" * 150,
            category="crm",
            tags=["one"],
            files=[{"path": "lib/x.ts", "action": "create"}],
            edge_cases=[],
        )
        findings = validate_all(doc)
        assert _fields(findings) == [
            "id",
            "version",
            "name",
            "category",
            "tags",
            "code.lib/x.ts",
            "edge_cases",
        ]

    def test_warnings_do_not_invalidate(self):
        findings = validate_all(_make_pattern(name="n" * 150, description="d" * 600))
        assert [f.severity for f in findings] == [Severity.WARNING, Severity.WARNING]
        assert is_valid(findings) is True


# ═══════════════════════════════════════════════════════════════════════
# FULL PIPELINE INTEGRATION
# ═══════════════════════════════════════════════════════════════════════


class TestFullPipeline:
    """Run the pipeline end-to-end on YAML text and files."""

    def test_unparseable_yaml_yields_single_file_finding(self):
        report = PatternValidationPipeline().run("id: [unclosed\nname: x", source="bad.yaml")
        assert report.is_valid is False
        assert len(report.findings) == 1
        finding = report.findings[0]
        assert finding.field == "file"
        assert finding.severity == Severity.ERROR
        assert finding.message.startswith("Failed to parse YAML")

    @pytest.mark.parametrize("raw", ["", "- a\n- b\n", "just a string"])
    def test_non_mapping_yaml_is_a_parse_failure(self, raw):
        report = PatternValidationPipeline().run(raw)
        assert _fields(report.findings) == ["file"]

    def test_report_carries_document_id(self):
        report = PatternValidationPipeline().run_document(_make_pattern(), source="x.yaml")
        assert report.is_valid is True
        assert report.document_id == "clerk-nextjs"
        assert report.source == "x.yaml"

    def test_unknown_document_id(self):
        report = PatternValidationPipeline().run_document(_without("id"))
        assert report.document_id == "UNKNOWN"
        assert report.is_valid is False

    def test_unreadable_file_is_a_file_finding(self, tmp_path):
        report = PatternValidationPipeline().run_file(tmp_path / "missing.yaml")
        assert _fields(report.findings) == ["file"]
        assert report.findings[0].message.startswith("Failed to read file")

    def test_shipped_library_is_valid(self):
        summary = PatternValidationPipeline(PATTERNS_DIR).run_paths()
        assert summary.files_checked >= 2
        assert summary.total_errors == 0, [
            (r.source, f.field, f.message) for r in summary.reports for f in r.findings
        ]
        assert summary.exit_code == 0

    def test_bad_document_does_not_abort_run(self, tmp_path):
        broken = tmp_path / "broken.yaml"
        broken.write_text("id: [unclosed", encoding="utf-8")
        good = PATTERNS_DIR / "auth" / "clerk-nextjs.yaml"

        summary = PatternValidationPipeline().run_paths([broken, good])
        assert summary.files_checked == 2
        assert summary.reports[0].is_valid is False
        assert summary.reports[1].is_valid is True
        assert summary.total_errors == 1
        assert summary.exit_code == 1

    def test_warnings_only_run_exits_zero(self, tmp_path):
        import yaml

        path = tmp_path / "long.yaml"
        path.write_text(yaml.safe_dump(_make_pattern(description="d" * 600)), encoding="utf-8")

        summary = PatternValidationPipeline().run_paths([path])
        assert summary.total_warnings == 1
        assert summary.total_errors == 0
        assert summary.exit_code == 0

    def test_missing_root_discovers_nothing(self, tmp_path):
        summary = PatternValidationPipeline(tmp_path / "nope").run_paths()
        assert summary.files_checked == 0
        assert summary.exit_code == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
