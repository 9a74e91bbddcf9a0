# railnorm/infra/database_manager.py
# -*- coding: utf-8 -*-
"""
SQLite store for calculation history + user custom routes
=========================================================

Two small tables, both holding opaque JSON payloads:

1) History (default table = "history")
   ------------------------------------
       CREATE TABLE IF NOT EXISTS {table} (
             id           INTEGER PRIMARY KEY AUTOINCREMENT
           , payload_json TEXT      NOT NULL
           , inserted_at  TEXT      NOT NULL DEFAULT (datetime('now'))
       );

   Newest first; only the latest `max_items` rows are kept (10 by default).

2) Custom routes (default table = "custom_routes")
   -----------------------------------------------
       CREATE TABLE IF NOT EXISTS {table} (
             route_id     TEXT      NOT NULL UNIQUE
           , payload_json TEXT      NOT NULL
           , inserted_at  TEXT      NOT NULL DEFAULT (datetime('now'))
       );

   Keyed by route id; payload = RouteRecord.to_dict().

Style
-----
• 4-space indentation
• comma-at-beginning for multi-line argument lists
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Mapping

from railnorm.core.config import get_history_defaults
from railnorm.core.models import RouteRecord
from railnorm.core.types import HistoryPayload, StrPath
from railnorm.infra.logging import get_logger

# ────────────────────────────────────────────────────────────────────────────────
# Defaults & logger
# ────────────────────────────────────────────────────────────────────────────────

DEFAULT_DB_PATH = get_history_defaults().db_path
HISTORY_TABLE = "history"
CUSTOM_ROUTES_TABLE = "custom_routes"

log = get_logger(__name__)


# ────────────────────────────────────────────────────────────────────────────────
# Connection helpers
# ────────────────────────────────────────────────────────────────────────────────

def _configure_pragmas(
    conn: sqlite3.Connection
) -> None:
    """
    Apply pragmatic defaults for a small local DB.
    """
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")


@contextmanager
def db_session(db_path: StrPath = DEFAULT_DB_PATH) -> Iterator[sqlite3.Connection]:
    """
    Open a connection, commit on success, roll back and re-raise on error.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    _configure_pragmas(conn)
    try:
        yield conn
        conn.commit()
    except Exception:
        log.error("SQLite transaction rolled back due to an error.", exc_info=True)
        conn.rollback()
        raise
    finally:
        conn.close()


# ────────────────────────────────────────────────────────────────────────────────
# DDL
# ────────────────────────────────────────────────────────────────────────────────

_CREATE_HISTORY_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
      id           INTEGER PRIMARY KEY AUTOINCREMENT
    , payload_json TEXT      NOT NULL
    , inserted_at  TEXT      NOT NULL DEFAULT (datetime('now'))
);
""".strip()

_CREATE_CUSTOM_ROUTES_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
      route_id     TEXT      NOT NULL UNIQUE
    , payload_json TEXT      NOT NULL
    , inserted_at  TEXT      NOT NULL DEFAULT (datetime('now'))
);
""".strip()


def ensure_tables(
    conn: sqlite3.Connection
    , *
    , history_table: str = HISTORY_TABLE
    , custom_routes_table: str = CUSTOM_ROUTES_TABLE
) -> None:
    conn.execute(_CREATE_HISTORY_SQL.format(table=history_table))
    conn.execute(_CREATE_CUSTOM_ROUTES_SQL.format(table=custom_routes_table))


# ────────────────────────────────────────────────────────────────────────────────
# History
# ────────────────────────────────────────────────────────────────────────────────

def add_history_entry(
    conn: sqlite3.Connection
    , payload: Mapping[str, Any]
    , *
    , max_items: int | None = None
    , table_name: str = HISTORY_TABLE
) -> int:
    """
    Insert a history payload and trim the table to the newest `max_items`.

    Returns the new row id.
    """
    keep = int(max_items if max_items is not None else get_history_defaults().max_items)
    ensure_tables(conn, history_table=table_name)

    cur = conn.execute(
          f"INSERT INTO {table_name} (payload_json) VALUES (?);"
        , (json.dumps(payload, ensure_ascii=False),)
    )
    row_id = int(cur.lastrowid)

    conn.execute(
        f"""
        DELETE FROM {table_name}
        WHERE id NOT IN (
            SELECT id FROM {table_name} ORDER BY id DESC LIMIT ?
        );
        """
        , (keep,)
    )
    log.debug("history: inserted id=%d (keeping %d)", row_id, keep)
    return row_id


def list_history(
    conn: sqlite3.Connection
    , *
    , table_name: str = HISTORY_TABLE
) -> List[HistoryPayload]:
    """
    Newest first. Each item = payload + {'id', 'inserted_at'}.
    """
    ensure_tables(conn, history_table=table_name)
    rows = conn.execute(
        f"SELECT id, payload_json, inserted_at FROM {table_name} ORDER BY id DESC;"
    ).fetchall()

    out: List[HistoryPayload] = []
    for row_id, payload_json, inserted_at in rows:
        try:
            item = json.loads(payload_json)
        except json.JSONDecodeError:
            log.warning("history: row id=%s has unreadable JSON; skipped.", row_id)
            continue
        item["id"] = row_id
        item["inserted_at"] = inserted_at
        out.append(item)
    return out


def clear_history(
    conn: sqlite3.Connection
    , *
    , table_name: str = HISTORY_TABLE
) -> int:
    ensure_tables(conn, history_table=table_name)
    cur = conn.execute(f"DELETE FROM {table_name};")
    log.info("history: cleared %d rows.", cur.rowcount)
    return int(cur.rowcount)


# ────────────────────────────────────────────────────────────────────────────────
# Custom routes
# ────────────────────────────────────────────────────────────────────────────────

def upsert_custom_route(
    conn: sqlite3.Connection
    , record: RouteRecord
    , *
    , table_name: str = CUSTOM_ROUTES_TABLE
) -> None:
    ensure_tables(conn, custom_routes_table=table_name)
    conn.execute(
        f"""
        INSERT INTO {table_name} (route_id, payload_json)
        VALUES (?, ?)
        ON CONFLICT(route_id) DO UPDATE SET
              payload_json = excluded.payload_json
            , inserted_at  = datetime('now');
        """
        , (record.id, json.dumps(record.to_dict(), ensure_ascii=False))
    )


def load_custom_routes(
    conn: sqlite3.Connection
    , *
    , table_name: str = CUSTOM_ROUTES_TABLE
) -> List[RouteRecord]:
    """
    Stored custom routes in insertion order. Unreadable rows are skipped.
    """
    ensure_tables(conn, custom_routes_table=table_name)
    rows = conn.execute(
        f"SELECT route_id, payload_json FROM {table_name} ORDER BY rowid;"
    ).fetchall()

    records: List[RouteRecord] = []
    for route_id, payload_json in rows:
        try:
            records.append(RouteRecord.from_dict(json.loads(payload_json)))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.warning("custom_routes: row '%s' unreadable (%s); skipped.", route_id, e)
    return records
