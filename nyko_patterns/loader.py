"""
Pattern discovery and YAML deserialization.

The content library lives in a directory tree:

    patterns/
      _template.yaml          ← skipped (underscore prefix)
      auth/
        _category.yaml        ← category metadata, loaded separately
        clerk-nextjs.yaml     ← a pattern

Everything in this module touches the file system or the YAML parser, so
everything in this module can fail. Failures are raised as
DocumentParseError and the callers decide whether to report or skip.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .exceptions import DocumentParseError
from .models import PatternCategory

logger = logging.getLogger(__name__)

PATTERN_SUFFIX = ".yaml"
CATEGORY_FILENAME = "_category.yaml"


# ─── Discovery ───────────────────────────────────────────────────────


def find_pattern_files(root: str | Path) -> list[Path]:
    """All `*.yaml` files under root, excluding `_`-prefixed names (templates, metadata)."""
    return sorted(
        path
        for path in Path(root).rglob(f"*{PATTERN_SUFFIX}")
        if path.is_file() and not path.name.startswith("_")
    )


def find_category_files(root: str | Path) -> list[Path]:
    return sorted(path for path in Path(root).rglob(CATEGORY_FILENAME) if path.is_file())


# ─── Parsing ─────────────────────────────────────────────────────────


def parse_document(raw_text: str) -> dict:
    """Deserialize YAML text into a pattern mapping.

    Raises:
        DocumentParseError: the text is not valid YAML, or its top level
            is not a mapping (empty documents included).
    """
    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise DocumentParseError(
            f"Failed to parse YAML: {e}", details={"error": str(e)}
        ) from e

    if not isinstance(data, dict):
        kind = "empty document" if data is None else type(data).__name__
        raise DocumentParseError(
            f"Failed to parse YAML: expected a mapping at the top level, got {kind}",
            details={"type": kind},
        )

    return data


def read_text(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentParseError(
            f"Failed to read file: {e}", details={"path": str(path)}
        ) from e


def load_document(path: str | Path) -> dict:
    return parse_document(read_text(path))


# ─── Batch Loading (export / sync) ───────────────────────────────────


def load_patterns(root: str | Path) -> list[dict]:
    """Load every pattern under root. Unreadable files are logged and skipped."""
    patterns: list[dict] = []

    for path in find_pattern_files(root):
        try:
            patterns.append(load_document(path))
        except DocumentParseError as e:
            logger.error("Error loading %s: %s", path, e)

    return patterns


def load_categories(root: str | Path) -> list[PatternCategory]:
    """Load every `_category.yaml` under root. Malformed files are logged and skipped."""
    categories: list[PatternCategory] = []

    for path in find_category_files(root):
        try:
            categories.append(PatternCategory.model_validate(load_document(path)))
        except (DocumentParseError, ValidationError) as e:
            logger.error("Error loading %s: %s", path, e)

    return categories
