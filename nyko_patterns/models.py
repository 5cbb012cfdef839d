"""
Pydantic models for the pattern tooling — findings, reports, export rows.

Pattern documents themselves are NOT modelled here as a strict schema: the
validator works on the raw YAML mapping so that a malformed document yields
findings instead of a coercion error at the boundary.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ─── Severity Levels ────────────────────────────────────────────────


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "error"  # Document is not publishable
    WARNING = "warning"  # Advisory — never affects pass/fail


# ─── Validation Finding ─────────────────────────────────────────────


class ValidationFinding(BaseModel):
    """A single validation finding with severity, machine-readable code, and field path."""

    severity: Severity
    code: str  # Machine-readable, e.g. "INVALID_CATEGORY"
    field: str  # Dotted/indexed path, e.g. "files[2].path"
    message: str  # Human-readable explanation
    details: dict = Field(default_factory=dict)


# ─── Category Metadata ──────────────────────────────────────────────


class PatternCategory(BaseModel):
    """Contents of a `_category.yaml` file."""

    id: str
    name: str
    description: str = ""
    patterns: list[str] = Field(default_factory=list)
    recommended_order: Optional[list[str]] = None


# ─── Export Index Row ───────────────────────────────────────────────


class PatternIndexEntry(BaseModel):
    """Summary row written to `patterns-index.json`.

    Built leniently from a raw document: export does not re-validate, so a
    field with the wrong shape is dropped rather than rejected.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    difficulty: Optional[str] = None
    status: Optional[str] = None
    version: Optional[str] = None

    @field_validator(
        "id", "name", "description", "category", "difficulty", "status", "version",
        mode="before",
    )
    @classmethod
    def _scalar_to_text(cls, value: object) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_to_text(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(tag) for tag in value if tag is not None]

    @classmethod
    def from_document(cls, doc: dict) -> PatternIndexEntry:
        return cls.model_validate({name: doc.get(name) for name in cls.model_fields})


# ─── Validation Report ──────────────────────────────────────────────


class ValidationReport(BaseModel):
    """The outcome of validating one document."""

    source: str  # File path or caller-supplied label
    document_id: str = "UNKNOWN"
    is_valid: bool
    findings: list[ValidationFinding] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]


class RunSummary(BaseModel):
    """Aggregate over every document validated in one run."""

    reports: list[ValidationReport] = Field(default_factory=list)

    @property
    def files_checked(self) -> int:
        return len(self.reports)

    @property
    def total_errors(self) -> int:
        return sum(len(r.errors) for r in self.reports)

    @property
    def total_warnings(self) -> int:
        return sum(len(r.warnings) for r in self.reports)

    @property
    def has_errors(self) -> bool:
        return any(not r.is_valid for r in self.reports)

    @property
    def exit_code(self) -> int:
        """0 if no document had an error-severity finding, 1 otherwise."""
        return 1 if self.has_errors else 0
