"""
Deterministic validation engine — the publishability rules for a pattern.

These validators run PURE CODE checks on the deserialized YAML mapping.
They never touch the file system, never raise, and never repair anything.

Each validator function:
  - Takes the raw document mapping
  - Returns a list of ValidationFinding objects (empty = all clear)
  - Is independently testable

The validate_all() function runs every check, in a fixed order, and
aggregates the findings. Nothing short-circuits: a document with ten
defects gets ten findings in one pass.
"""

from __future__ import annotations

import re

from .models import Severity, ValidationFinding


# ─── Closed Enumerations ─────────────────────────────────────────────
# Part of the external contract. A new category must be added here before
# any pattern may use it.

VALID_CATEGORIES: tuple[str, ...] = (
    "auth",
    "payments",
    "database",
    "deploy",
    "email",
    "api",
    "storage",
    "monitoring",
    "ai",
)

VALID_DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
VALID_STATUSES: tuple[str, ...] = ("stable", "beta", "deprecated")
VALID_ACTIONS: tuple[str, ...] = ("create", "modify", "append")

# ─── Format Rules ────────────────────────────────────────────────────

ID_PATTERN = re.compile(r"[a-z0-9]+(-[a-z0-9]+)*")
VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_TAGS = 2
MIN_EDGE_CASES = 3


# ─── Orchestrator ────────────────────────────────────────────────────


def validate_all(doc: dict) -> list[ValidationFinding]:
    """Run ALL validators and collect findings in rule order."""
    findings: list[ValidationFinding] = []
    for validator in VALIDATORS:
        findings.extend(validator(doc))
    return findings


def is_valid(findings: list[ValidationFinding]) -> bool:
    """A document passes iff none of its findings is an error."""
    return not any(f.severity == Severity.ERROR for f in findings)


# ─── Individual Validators ───────────────────────────────────────────


def validate_identity(doc: dict) -> list[ValidationFinding]:
    """id must be kebab-case, version must be MAJOR.MINOR.PATCH, updated_at must exist."""
    findings: list[ValidationFinding] = []

    pattern_id = doc.get("id")
    if not pattern_id:
        findings.append(_missing("id"))
    elif not _matches(ID_PATTERN, pattern_id):
        findings.append(
            ValidationFinding(
                severity=Severity.ERROR,
                code="INVALID_ID_FORMAT",
                field="id",
                message="Must be kebab-case (e.g., my-pattern-name)",
                details={"id": str(pattern_id)},
            )
        )

    version = doc.get("version")
    if not version:
        findings.append(_missing("version"))
    elif not _matches(VERSION_PATTERN, version):
        findings.append(
            ValidationFinding(
                severity=Severity.ERROR,
                code="INVALID_VERSION_FORMAT",
                field="version",
                message="Must be semantic version (e.g., 1.0.0)",
                details={"version": str(version)},
            )
        )

    if not doc.get("updated_at"):
        findings.append(_missing("updated_at"))

    return findings


def validate_text_fields(doc: dict) -> list[ValidationFinding]:
    """name and description are required; overly long values are only a warning."""
    findings: list[ValidationFinding] = []

    for field_name, limit in (
        ("name", MAX_NAME_LENGTH),
        ("description", MAX_DESCRIPTION_LENGTH),
    ):
        value = doc.get(field_name)
        if not value:
            findings.append(_missing(field_name))
        elif isinstance(value, str) and len(value) > limit:
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code=f"{field_name.upper()}_TOO_LONG",
                    field=field_name,
                    message=f"{field_name.capitalize()} should be less than {limit} characters",
                    details={"length": len(value), "limit": limit},
                )
            )

    return findings


def validate_classification(doc: dict) -> list[ValidationFinding]:
    """category, tags, difficulty and (optional) status."""
    findings: list[ValidationFinding] = []

    category = doc.get("category")
    if not category:
        findings.append(_missing("category"))
    elif not _member(category, VALID_CATEGORIES):
        findings.append(_not_one_of("category", category, VALID_CATEGORIES))

    tags = doc.get("tags")
    if _length(tags) < MIN_TAGS:
        findings.append(
            ValidationFinding(
                severity=Severity.ERROR,
                code="INSUFFICIENT_TAGS",
                field="tags",
                message=f"At least {MIN_TAGS} tags are required",
                details={"count": _length(tags)},
            )
        )

    difficulty = doc.get("difficulty")
    if not difficulty:
        findings.append(_missing("difficulty"))
    elif not _member(difficulty, VALID_DIFFICULTIES):
        findings.append(_not_one_of("difficulty", difficulty, VALID_DIFFICULTIES))

    # Absent status is fine; only a present-but-unknown value is flagged.
    status = doc.get("status")
    if status and not _member(status, VALID_STATUSES):
        findings.append(_not_one_of("status", status, VALID_STATUSES))

    return findings


def validate_stack(doc: dict) -> list[ValidationFinding]:
    """At least one required dependency must be declared."""
    stack = doc.get("stack")
    required = stack.get("required") if isinstance(stack, dict) else None

    if _length(required) == 0:
        return [
            ValidationFinding(
                severity=Severity.ERROR,
                code="MISSING_STACK_REQUIREMENT",
                field="stack.required",
                message="At least one required dependency must be specified",
            )
        ]
    return []


def validate_files(doc: dict) -> list[ValidationFinding]:
    """Every file descriptor needs a path and a known action."""
    files = doc.get("files")

    if _length(files) == 0:
        return [
            ValidationFinding(
                severity=Severity.ERROR,
                code="MISSING_FILES",
                field="files",
                message="At least one file must be specified",
            )
        ]

    findings: list[ValidationFinding] = []
    for index, entry in enumerate(files):
        entry = entry if isinstance(entry, dict) else {}

        if not entry.get("path"):
            findings.append(
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="MISSING_FILE_PATH",
                    field=f"files[{index}].path",
                    message="File path is required",
                )
            )

        action = entry.get("action")
        if not action or not _member(action, VALID_ACTIONS):
            findings.append(
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="INVALID_FILE_ACTION",
                    field=f"files[{index}].action",
                    message=f"Invalid action. Must be one of: {', '.join(VALID_ACTIONS)}",
                    details={"action": None if action is None else str(action)},
                )
            )

    return findings


def validate_code_coverage(doc: dict) -> list[ValidationFinding]:
    """The code map must be non-empty and cover every file the pattern creates.

    This is the only cross-field rule: it correlates `files` with the keys
    of `code`. Files with `modify` or `append` actions may be described
    without their full content, so they need no entry.
    """
    code = doc.get("code")

    if not isinstance(code, dict) or not code:
        return [
            ValidationFinding(
                severity=Severity.ERROR,
                code="MISSING_CODE",
                field="code",
                message="Code content is required",
            )
        ]

    findings: list[ValidationFinding] = []
    files = doc.get("files")
    if not isinstance(files, list):
        return findings

    for entry in files:
        if not isinstance(entry, dict) or entry.get("action") != "create":
            continue
        path = entry.get("path")
        # A missing path is already reported by validate_files.
        if not isinstance(path, str) or not path:
            continue
        if path not in code:
            findings.append(
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="MISSING_CODE_FOR_FILE",
                    field=f"code.{path}",
                    message=f"Missing code for file: {path}",
                    details={"path": path},
                )
            )

    return findings


def validate_edge_cases(doc: dict) -> list[ValidationFinding]:
    count = _length(doc.get("edge_cases"))
    if count < MIN_EDGE_CASES:
        return [
            ValidationFinding(
                severity=Severity.ERROR,
                code="INSUFFICIENT_EDGE_CASES",
                field="edge_cases",
                message=f"At least {MIN_EDGE_CASES} edge cases are required",
                details={"count": count},
            )
        ]
    return []


def validate_manual_tests(doc: dict) -> list[ValidationFinding]:
    section = doc.get("validation")
    steps = section.get("manual_test") if isinstance(section, dict) else None

    if _length(steps) == 0:
        return [
            ValidationFinding(
                severity=Severity.ERROR,
                code="MISSING_MANUAL_TEST",
                field="validation.manual_test",
                message="At least one manual test step is required",
            )
        ]
    return []


# Execution order == report order.
VALIDATORS = (
    validate_identity,
    validate_text_fields,
    validate_classification,
    validate_stack,
    validate_files,
    validate_code_coverage,
    validate_edge_cases,
    validate_manual_tests,
)


# ─── Internal Helpers ────────────────────────────────────────────────


def _missing(field_name: str) -> ValidationFinding:
    return ValidationFinding(
        severity=Severity.ERROR,
        code="MISSING_REQUIRED_FIELD",
        field=field_name,
        message="Missing required field",
    )


def _not_one_of(field_name: str, value: object, allowed: tuple[str, ...]) -> ValidationFinding:
    return ValidationFinding(
        severity=Severity.ERROR,
        code=f"INVALID_{field_name.upper()}",
        field=field_name,
        message=f"Invalid {field_name}. Must be one of: {', '.join(allowed)}",
        details={"value": str(value), "allowed": list(allowed)},
    )


def _matches(pattern: re.Pattern[str], value: object) -> bool:
    """Whole-string match; non-string scalars (e.g. YAML floats) never match."""
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def _member(value: object, allowed: tuple[str, ...]) -> bool:
    return isinstance(value, str) and value in allowed


def _length(value: object) -> int:
    """Length of a YAML sequence; anything that is not a list counts as empty."""
    return len(value) if isinstance(value, list) else 0
