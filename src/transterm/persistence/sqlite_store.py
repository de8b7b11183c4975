"""SQLite-based storage for the glossary.

Local stand-in for the hosted backend with the same table shapes:

- Term: canonical English term, aliases (JSON array), optional note
- Translation: Korean rendering of a term, ranked by sort_order

A re-ranking batch runs inside one transaction, so the table never holds a
half-applied order.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..errors import PersistenceFailure
from ..models import ItemId, NewItem, PositionWrite, RankedItem, Term, WriteResult
from ..ranking import normalize_for_display
from ..session import SessionContext

logger = logging.getLogger(__name__)

# Schema version for migrations
# v1: Term and Translation tables
# v2: Add sort_order column to Translation (rows before v2 rank by id)
# v3: Add note column to Term
SCHEMA_VERSION = 3


class _BatchRejected(Exception):
    """Internal signal to roll back a position batch."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqliteGlossaryStore:
    """Glossary store backed by a local SQLite file."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        # Thread-local storage for connections
        self._local = threading.local()
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    # =========================================================================
    # Connection management
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get a thread-local database connection."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
            self._local.conn = conn
        if not self._schema_ready:
            with self._schema_lock:
                if not self._schema_ready:
                    self._init_schema(conn)
                    self._schema_ready = True
        return conn

    def close(self) -> None:
        """Close this thread's connection.

        Primarily used by tests to release the file between cases.
        """
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            try:
                conn.close()
            except sqlite3.Error as e:
                logger.debug("Error closing glossary connection (non-critical): %s", e)
            self._local.conn = None

    def for_session(self, session: SessionContext) -> SqliteGlossaryStore:
        """Local files have no row level security; the same store serves everyone."""
        return self

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        """Create the schema, or migrate an older file forward."""
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is not None:
            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
            if row is not None:
                if row[0] < SCHEMA_VERSION:
                    self._run_schema_migrations(conn, row[0])
                return

        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );

            CREATE TABLE IF NOT EXISTS Term (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                aliases TEXT NOT NULL DEFAULT '[]',  -- JSON array of strings
                note TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS Translation (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                term_id INTEGER NOT NULL REFERENCES Term(id) ON DELETE CASCADE,
                text TEXT NOT NULL,
                is_preferred INTEGER,
                sort_order INTEGER,
                usage TEXT,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_translation_term ON Translation(term_id, sort_order);
            CREATE INDEX IF NOT EXISTS idx_term_name ON Term(name);
        """)
        conn.execute("DELETE FROM schema_version")
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        conn.commit()

    def _run_schema_migrations(self, conn: sqlite3.Connection, from_version: int) -> None:
        logger.info("Migrating glossary schema from v%d to v%d", from_version, SCHEMA_VERSION)
        if from_version < 2:
            conn.execute("ALTER TABLE Translation ADD COLUMN sort_order INTEGER")
        if from_version < 3:
            conn.execute("ALTER TABLE Term ADD COLUMN note TEXT")
        conn.execute("UPDATE schema_version SET version = ?", (SCHEMA_VERSION,))
        conn.commit()

    # =========================================================================
    # Row conversion
    # =========================================================================

    def _translations_for(self, conn: sqlite3.Connection, term_ids: list[int]) -> dict[int, list[RankedItem]]:
        result: dict[int, list[RankedItem]] = {tid: [] for tid in term_ids}
        if not term_ids:
            return result
        placeholders = ",".join("?" for _ in term_ids)
        rows = conn.execute(
            f"SELECT * FROM Translation WHERE term_id IN ({placeholders})",
            term_ids,
        ).fetchall()
        for row in rows:
            result[row["term_id"]].append(RankedItem.from_row(dict(row)))
        return result

    def _terms_from_rows(self, conn: sqlite3.Connection, rows: list[sqlite3.Row]) -> list[Term]:
        translations = self._translations_for(conn, [row["id"] for row in rows])
        terms = []
        for row in rows:
            data: dict[str, Any] = dict(row)
            data["aliases"] = json.loads(data.get("aliases") or "[]")
            terms.append(Term.from_row(data, normalize_for_display(translations[row["id"]])))
        return terms

    def _query_terms(self, sql: str, params: Sequence[Any], operation: str) -> list[Term]:
        try:
            conn = self._get_connection()
            rows = conn.execute(sql, params).fetchall()
            return self._terms_from_rows(conn, rows)
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to {operation}: {e}", operation=operation, table="Term"
            ) from e

    # =========================================================================
    # Term operations
    # =========================================================================

    def search_terms(self, query: str) -> list[Term]:
        """Terms whose name contains ``query`` or whose aliases include it."""
        query = query.strip()
        if not query:
            return []
        return self._query_terms(
            """
            SELECT * FROM Term
            WHERE name LIKE ? ESCAPE '\\'
               OR EXISTS (SELECT 1 FROM json_each(Term.aliases) WHERE value = ?)
            ORDER BY name ASC
            """,
            (f"%{_escape_like(query)}%", query),
            "search terms",
        )

    def lookup_terms(self, name: str) -> list[Term]:
        """Terms named exactly ``name`` (case-insensitive) or aliased to it."""
        name = name.strip()
        if not name:
            return []
        return self._query_terms(
            """
            SELECT * FROM Term
            WHERE lower(name) = lower(?)
               OR EXISTS (SELECT 1 FROM json_each(Term.aliases) WHERE value = ?)
            ORDER BY name ASC
            """,
            (name, name),
            "look up terms",
        )

    def list_terms(self) -> list[Term]:
        """All terms, newest first."""
        return self._query_terms(
            "SELECT * FROM Term ORDER BY created_at DESC, id DESC", (), "list terms"
        )

    def get_term(self, term_id: int) -> Term | None:
        terms = self._query_terms("SELECT * FROM Term WHERE id = ?", (term_id,), "get term")
        return terms[0] if terms else None

    def insert_term(self, *, name: str, aliases: list[str], note: str | None) -> Term:
        now = _now_iso()
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO Term (name, aliases, note, created_at) VALUES (?, ?, ?, ?)",
                    (name, json.dumps(aliases, ensure_ascii=False), note, now),
                )
                term_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to insert term: {e}", operation="insert", table="Term"
            ) from e
        return Term(id=term_id, name=name, aliases=list(aliases), note=note,
                    created_at=datetime.fromisoformat(now))

    def update_term(self, term_id: int, *, name: str, aliases: list[str], note: str | None) -> None:
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "UPDATE Term SET name = ?, aliases = ?, note = ? WHERE id = ?",
                    (name, json.dumps(aliases, ensure_ascii=False), note, term_id),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to update term: {e}", operation="update", table="Term"
            ) from e
        if cursor.rowcount == 0:
            raise PersistenceFailure(
                f"Term not found: {term_id}", operation="update", table="Term"
            )

    def delete_term(self, term_id: int) -> None:
        try:
            with self._transaction() as conn:
                conn.execute("DELETE FROM Term WHERE id = ?", (term_id,))
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to delete term: {e}", operation="delete", table="Term"
            ) from e

    # =========================================================================
    # Ranked item operations
    # =========================================================================

    def fetch_ranked_items(self, parent_id: ItemId) -> list[RankedItem]:
        try:
            rows = self._get_connection().execute(
                "SELECT * FROM Translation WHERE term_id = ?", (parent_id,)
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to fetch translations: {e}", operation="fetch", table="Translation"
            ) from e
        return [RankedItem.from_row(dict(row)) for row in rows]

    def bulk_upsert_positions(
        self, parent_id: ItemId, writes: Sequence[PositionWrite]
    ) -> list[WriteResult]:
        """Apply every position write or none of them.

        A write whose row no longer belongs to ``parent_id`` fails the whole
        batch; the other entries are reported as rolled back.
        """
        results: list[WriteResult] = []
        try:
            with self._transaction() as conn:
                for write in writes:
                    cursor = conn.execute(
                        "UPDATE Translation SET sort_order = ?, is_preferred = ? "
                        "WHERE id = ? AND term_id = ?",
                        (write.position, int(write.is_preferred), write.id, parent_id),
                    )
                    if cursor.rowcount == 0:
                        results.append(WriteResult(id=write.id, ok=False, error="not found"))
                    else:
                        results.append(WriteResult(id=write.id, ok=True))
                if not all(r.ok for r in results):
                    raise _BatchRejected()
        except _BatchRejected:
            logger.warning("Position batch for term %s rolled back", parent_id)
            return [
                r if not r.ok else WriteResult(id=r.id, ok=False, error="rolled back")
                for r in results
            ]
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to save order: {e}", operation="reorder", table="Translation"
            ) from e
        return results

    def delete_item(self, item_id: ItemId) -> None:
        try:
            with self._transaction() as conn:
                conn.execute("DELETE FROM Translation WHERE id = ?", (item_id,))
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to delete translation: {e}", operation="delete", table="Translation"
            ) from e

    def delete_items_for_parent(self, parent_id: ItemId) -> None:
        try:
            with self._transaction() as conn:
                conn.execute("DELETE FROM Translation WHERE term_id = ?", (parent_id,))
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to delete translations: {e}", operation="delete", table="Translation"
            ) from e

    def insert_items(self, parent_id: ItemId, items: Sequence[NewItem]) -> list[RankedItem]:
        now = _now_iso()
        inserted: list[RankedItem] = []
        try:
            with self._transaction() as conn:
                for item in items:
                    row = item.to_row(parent_id)
                    cursor = conn.execute(
                        """
                        INSERT INTO Translation
                            (term_id, text, is_preferred, sort_order, usage, created_at)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (parent_id, row["text"], int(row["is_preferred"]), row["sort_order"],
                         row["usage"], now),
                    )
                    inserted.append(
                        RankedItem(
                            id=cursor.lastrowid,
                            text=item.text,
                            position=item.position,
                            is_preferred=item.is_preferred,
                            parent_id=parent_id,
                            usage=row["usage"],
                        )
                    )
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to insert translations: {e}", operation="insert", table="Translation"
            ) from e
        return inserted
