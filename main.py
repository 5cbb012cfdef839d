#!/usr/bin/env python3
"""
NYKO Patterns — Entry Point
============================

Validates pattern YAML files and publishes the library.

Usage:
    python main.py validate                         # Every pattern under ./patterns
    python main.py validate patterns/auth/x.yaml    # Specific file(s)
    python main.py sync                             # JSON export to ./dist (+ Supabase if configured)
    SUPABASE_URL=... SUPABASE_SERVICE_ROLE_KEY=... python main.py sync
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from nyko_patterns.exceptions import ExportError
from nyko_patterns.export import generate_json_export
from nyko_patterns.loader import load_categories, load_patterns
from nyko_patterns.models import RunSummary, Severity, ValidationReport
from nyko_patterns.pipeline import DEFAULT_PATTERNS_DIR, PatternValidationPipeline
from nyko_patterns.sync import sync_to_supabase

# ─── Load .env if available (optional dependency) ────────────────────
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 50

_MARKERS = {
    Severity.ERROR: f"{_RED}✗{_RESET}",
    Severity.WARNING: f"{_YELLOW}!{_RESET}",
}


# ─── Pretty Printer ─────────────────────────────────────────────────


def _display_path(source: str) -> str:
    """Path relative to the working directory when possible."""
    try:
        return os.path.relpath(source)
    except ValueError:
        return source


def print_document_report(report: ValidationReport) -> None:
    """Print a document's path and its findings. Clean documents print nothing."""
    if not report.findings:
        return
    print(f"{_BOLD}{_display_path(report.source)}{_RESET}")
    for f in report.findings:
        print(f"   {_MARKERS[f.severity]} {f.field}: {f.message}")
    print()


def print_summary(summary: RunSummary) -> int:
    """Print run totals.

    Returns:
        0 if every document passed, 1 otherwise.
    """
    print("─" * _WIDTH)
    print(f"\n{_BOLD}{_CYAN}Validation Summary:{_RESET}")
    print(f"   Files checked: {summary.files_checked}")
    print(f"   Errors: {summary.total_errors}")
    print(f"   Warnings: {summary.total_warnings}")

    if summary.has_errors:
        print(f"\n{_RED}{_BOLD}Validation failed with {summary.total_errors} error(s){_RESET}\n")
    else:
        print(f"\n{_GREEN}{_BOLD}All patterns are valid!{_RESET}\n")

    return summary.exit_code


# ─── Commands ────────────────────────────────────────────────────────


def cmd_validate(args: argparse.Namespace) -> int:
    pipeline = PatternValidationPipeline(args.root)
    # No explicit paths: run_paths walks --root itself.
    summary = pipeline.run_paths(Path(p).resolve() for p in args.paths)

    print(f"\n{_DIM}Validated {summary.files_checked} pattern(s){_RESET}\n")
    for report in summary.reports:
        print_document_report(report)

    return print_summary(summary)


def cmd_sync(args: argparse.Namespace) -> int:
    print(f"\n{_BOLD}NYKO Patterns Sync{_RESET}\n")

    patterns = load_patterns(args.root)
    categories = load_categories(args.root)
    print(f"   Loaded {len(patterns)} patterns")
    print(f"   Loaded {len(categories)} categories\n")

    try:
        written = generate_json_export(patterns, categories, args.out)
    except ExportError as e:
        print(f"{_RED}{e}{_RESET}")
        return 1
    print(f"   {_GREEN}JSON export complete:{_RESET} {args.out} ({len(written)} files)")

    if args.no_db:
        print(f"   {_DIM}Database sync disabled (--no-db){_RESET}\n")
        return 0

    result = sync_to_supabase(patterns, categories)
    if result is None:
        print(f"   {_YELLOW}Supabase credentials not found. Skipping database sync.{_RESET}")
        print(f"   {_DIM}Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY to enable.{_RESET}\n")
        return 0

    print(
        f"   Synced {result.categories_synced} categories, "
        f"{result.patterns_synced} patterns"
    )
    for failure in result.failures:
        print(f"   {_RED}✗ {failure}{_RESET}")
    print()
    return 0 if result.ok else 1


# ─── Main ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nyko-patterns",
        description="Validate and publish NYKO pattern documents.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Validate pattern YAML files")
    validate.add_argument("paths", nargs="*", help="Pattern files (default: every pattern under --root)")
    validate.add_argument("--root", type=Path, default=DEFAULT_PATTERNS_DIR, help="Patterns directory")
    validate.set_defaults(func=cmd_validate)

    sync = sub.add_parser("sync", help="Export patterns to JSON and sync to Supabase")
    sync.add_argument("--root", type=Path, default=DEFAULT_PATTERNS_DIR, help="Patterns directory")
    sync.add_argument("--out", type=Path, default=Path("dist"), help="JSON export directory")
    sync.add_argument("--no-db", action="store_true", help="Only write the JSON export")
    sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
