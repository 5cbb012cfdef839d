"""
Static JSON export of the pattern library.

Produces, inside the output directory:

    patterns-index.json     ← one summary row per pattern
    patterns.json           ← every pattern, in full
    categories.json         ← category metadata
    patterns/<id>.json      ← one file per pattern

YAML may produce values JSON cannot represent natively (an unquoted
`updated_at: 2024-01-15` loads as a date); those are written as strings.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .exceptions import ExportError
from .models import PatternCategory, PatternIndexEntry
from .validators import ID_PATTERN

logger = logging.getLogger(__name__)


def to_json(data: object) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def generate_json_export(
    patterns: list[dict],
    categories: list[PatternCategory],
    output_dir: str | Path,
) -> list[Path]:
    """Write the JSON export and return the paths written.

    Raises:
        ExportError: the output directory or a file could not be written.
    """
    output_dir = Path(output_dir)
    patterns_dir = output_dir / "patterns"
    written: list[Path] = []

    index = [
        PatternIndexEntry.from_document(p).model_dump(mode="json") for p in patterns
    ]
    category_rows = [c.model_dump(mode="json") for c in categories]

    try:
        patterns_dir.mkdir(parents=True, exist_ok=True)

        written.append(_write(output_dir / "patterns-index.json", index))
        written.append(_write(output_dir / "patterns.json", patterns))
        written.append(_write(output_dir / "categories.json", category_rows))

        for pattern in patterns:
            pattern_id = pattern.get("id")
            if not pattern_id:
                logger.warning("Skipping per-pattern export for a pattern with no id")
                continue
            # The id becomes a file name; anything but kebab-case could escape patterns_dir.
            if ID_PATTERN.fullmatch(str(pattern_id)) is None:
                logger.warning("Skipping per-pattern export for non kebab-case id %r", pattern_id)
                continue
            written.append(_write(patterns_dir / f"{pattern_id}.json", pattern))
    except OSError as e:
        raise ExportError(
            f"JSON export to {output_dir} failed: {e}", details={"output_dir": str(output_dir)}
        ) from e

    logger.info("JSON export complete: %s (%d file(s))", output_dir, len(written))
    return written


def _write(path: Path, data: object) -> Path:
    path.write_text(to_json(data), encoding="utf-8")
    return path
