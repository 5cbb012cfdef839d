"""
Database sync — upserts categories and patterns into Supabase.

Talks to the project's PostgREST endpoint directly over httpx:

    POST {SUPABASE_URL}/rest/v1/{table}?on_conflict=id
    Prefer: resolution=merge-duplicates

Design:
  - No credentials → the sync is skipped, not failed (export still runs)
  - Each row is upserted independently; a failed row is logged and counted
  - Timestamps (updated_at / synced_at) are stamped at sync time, UTC
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx

from .exceptions import SyncError
from .models import PatternCategory

logger = logging.getLogger(__name__)

CATEGORIES_TABLE = "pattern_categories"
PATTERNS_TABLE = "patterns"
DEFAULT_TIMEOUT = 30.0


# ─── Credentials ─────────────────────────────────────────────────────


@dataclass
class SupabaseCredentials:
    url: str
    service_role_key: str

    @classmethod
    def from_env(cls) -> Optional[SupabaseCredentials]:
        """Read SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY. Returns None if either is unset."""
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        if not url or not key:
            return None
        return cls(url=url.rstrip("/"), service_role_key=key)


@dataclass
class SyncResult:
    """Counts for one sync run."""

    categories_synced: int = 0
    patterns_synced: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


# ─── Row Builders ────────────────────────────────────────────────────


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def category_row(category: PatternCategory) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "pattern_ids": category.patterns,
        "recommended_order": category.recommended_order,
        "updated_at": _now(),
    }


def pattern_row(pattern: dict) -> dict:
    return {
        "id": pattern.get("id"),
        "version": pattern.get("version"),
        "updated_at": pattern.get("updated_at"),
        "author": pattern.get("author"),
        "status": pattern.get("status"),
        "name": pattern.get("name"),
        "description": pattern.get("description"),
        "category": pattern.get("category"),
        "tags": pattern.get("tags"),
        "difficulty": pattern.get("difficulty"),
        "time_estimate": pattern.get("time_estimate"),
        "stack": pattern.get("stack"),
        "requires": pattern.get("requires") or [],
        "enables": pattern.get("enables") or [],
        "env_vars": pattern.get("env_vars") or {},
        "external_setup": pattern.get("external_setup") or [],
        "files": pattern.get("files"),
        "code": pattern.get("code"),
        "edge_cases": pattern.get("edge_cases"),
        "validation": pattern.get("validation"),
        "synced_at": _now(),
    }


# ─── Client ──────────────────────────────────────────────────────────


class SupabaseSync:
    """Upsert client for the pattern tables.

    Usage:
        credentials = SupabaseCredentials.from_env()
        if credentials:
            with SupabaseSync(credentials) as sync:
                result = sync.sync(patterns, categories)
    """

    def __init__(
        self,
        credentials: SupabaseCredentials,
        client: httpx.Client | None = None,
    ):
        self.credentials = credentials
        self._client = client or httpx.Client(timeout=DEFAULT_TIMEOUT)

    def __enter__(self) -> SupabaseSync:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def upsert(self, table: str, row: dict) -> None:
        """Upsert one row, merging on `id`.

        Raises:
            SyncError: transport failure or non-2xx response.
        """
        url = f"{self.credentials.url}/rest/v1/{table}"
        key = self.credentials.service_role_key
        try:
            response = self._client.post(
                url,
                params={"on_conflict": "id"},
                headers={
                    "apikey": key,
                    "Authorization": f"Bearer {key}",
                    "Content-Type": "application/json",
                    "Prefer": "resolution=merge-duplicates,return=minimal",
                },
                # YAML dates are not JSON-native; render them as strings.
                content=json.dumps(row, default=str),
            )
        except httpx.HTTPError as e:
            raise SyncError(
                f"Request to {table} failed: {e}", details={"table": table, "id": row.get("id")}
            ) from e

        if response.is_error:
            raise SyncError(
                f"{table} upsert rejected ({response.status_code}): {response.text}",
                details={"table": table, "id": row.get("id"), "status": response.status_code},
            )

    def sync(self, patterns: list[dict], categories: list[PatternCategory]) -> SyncResult:
        """Upsert categories first, then patterns. Never stops on a failed row."""
        result = SyncResult()
        logger.info("Syncing %d categories and %d patterns to Supabase", len(categories), len(patterns))

        for category in categories:
            try:
                self.upsert(CATEGORIES_TABLE, category_row(category))
                result.categories_synced += 1
            except SyncError as e:
                logger.error("Error upserting category %s: %s", category.id, e)
                result.failures.append(f"category:{category.id}")

        for pattern in patterns:
            pattern_id = pattern.get("id")
            try:
                self.upsert(PATTERNS_TABLE, pattern_row(pattern))
                result.patterns_synced += 1
                logger.info("Synced pattern %s", pattern_id)
            except SyncError as e:
                logger.error("Error upserting pattern %s: %s", pattern_id, e)
                result.failures.append(f"pattern:{pattern_id}")

        return result


def sync_to_supabase(
    patterns: list[dict],
    categories: list[PatternCategory],
    credentials: SupabaseCredentials | None = None,
) -> SyncResult | None:
    """Sync using explicit or environment credentials.

    Returns:
        SyncResult, or None if no credentials are configured.
        Missing credentials are NOT an error — the sync is simply skipped.
    """
    credentials = credentials or SupabaseCredentials.from_env()
    if credentials is None:
        logger.warning(
            "Supabase credentials not found — skipping database sync. "
            "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY to enable."
        )
        return None

    with SupabaseSync(credentials) as client:
        return client.sync(patterns, categories)
