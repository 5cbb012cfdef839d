"""
Custom exception hierarchy for the pattern tooling.

Exceptions are raised only at the I/O edges (reading, parsing, exporting,
syncing). The validator itself never raises: the pipeline converts these
into findings or log lines so one bad document never aborts a run.
"""

from __future__ import annotations


class PatternLibraryError(Exception):
    """Base exception for all pattern tooling failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class DocumentParseError(PatternLibraryError):
    """The raw text could not be turned into a pattern mapping."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("PARSE_FAILED", message, details)


class ExportError(PatternLibraryError):
    """Writing the JSON export failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("EXPORT_FAILED", message, details)


class SyncError(PatternLibraryError):
    """An upsert against the external database failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("SYNC_FAILED", message, details)
