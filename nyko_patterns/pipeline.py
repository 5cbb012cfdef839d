"""
Main validation pipeline — orchestrates the full workflow.

Flow:
  ┌───────────┐
  │ Discover  │   ← explicit paths, or walk of the patterns root
  └─────┬─────┘
        │
  ┌─────▼─────┐
  │   Parse   │   ← YAML → mapping; failure = ONE "file" finding, stop
  └─────┬─────┘
        │
  ┌─────▼─────┐
  │ Validate  │   ← Pure rule checks, all of them, every time
  └─────┬─────┘
        │
  ┌─────▼─────┐
  │  Report   │   ← Typed findings + pass/fail per document
  └─────┬─────┘
        │
  ┌─────▼─────┐
  │  Summary  │   ← Totals + exit code for the whole run
  └───────────┘

Design principles:
  - A parse failure short-circuits only its own document.
  - One bad document never aborts the run.
  - Warnings are reported but never fail a document.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .exceptions import DocumentParseError
from .loader import find_pattern_files, parse_document, read_text
from .models import (
    RunSummary,
    Severity,
    ValidationFinding,
    ValidationReport,
)
from .validators import is_valid, validate_all

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS_DIR = Path("patterns")


class PatternValidationPipeline:
    """Orchestrates pattern validation for one document or a whole library.

    Usage:
        pipeline = PatternValidationPipeline()
        summary = pipeline.run_paths([])      # walk ./patterns
        for report in summary.reports:
            for finding in report.findings:
                print(finding)
        sys.exit(summary.exit_code)
    """

    def __init__(self, patterns_dir: str | Path | None = None):
        self.patterns_dir = Path(patterns_dir) if patterns_dir else DEFAULT_PATTERNS_DIR

    def discover(self) -> list[Path]:
        if not self.patterns_dir.is_dir():
            logger.warning("Patterns directory not found: %s", self.patterns_dir)
            return []
        return find_pattern_files(self.patterns_dir)

    # ─── Single Document ─────────────────────────────────────────────

    def run_document(self, doc: dict, source: str = "<document>") -> ValidationReport:
        """Validate an already-deserialized mapping."""
        findings = validate_all(doc)
        pattern_id = doc.get("id")

        return ValidationReport(
            source=source,
            document_id=str(pattern_id) if pattern_id else "UNKNOWN",
            is_valid=is_valid(findings),
            findings=findings,
        )

    def run(self, raw_text: str, source: str = "<string>") -> ValidationReport:
        """Parse raw YAML text and validate it.

        Returns:
            ValidationReport with findings and pass/fail verdict. A parse
            failure yields exactly one error finding on field "file".
        """
        try:
            doc = parse_document(raw_text)
        except DocumentParseError as e:
            return self._parse_failure(source, e)

        return self.run_document(doc, source)

    def run_file(self, path: str | Path) -> ValidationReport:
        source = str(path)
        logger.debug("Validating %s", source)

        try:
            raw_text = read_text(path)
        except DocumentParseError as e:
            return self._parse_failure(source, e)

        return self.run(raw_text, source)

    # ─── Whole Run ───────────────────────────────────────────────────

    def run_paths(self, paths: Iterable[str | Path] = ()) -> RunSummary:
        """Validate explicit paths, or every discovered pattern when none are given."""
        targets = [Path(p) for p in paths] or self.discover()
        logger.info("Validating %d pattern(s)", len(targets))

        summary = RunSummary()
        for target in targets:
            summary.reports.append(self.run_file(target))

        logger.info(
            "Validation finished: %d error(s), %d warning(s)",
            summary.total_errors,
            summary.total_warnings,
        )
        return summary

    # ─── Parse Failure ───────────────────────────────────────────────

    @staticmethod
    def _parse_failure(source: str, error: DocumentParseError) -> ValidationReport:
        logger.warning("Could not parse %s: %s", source, error)
        return ValidationReport(
            source=source,
            is_valid=False,
            findings=[
                ValidationFinding(
                    severity=Severity.ERROR,
                    code=error.code,
                    field="file",
                    message=str(error),
                    details=error.details,
                )
            ],
        )
