from __future__ import annotations

import json
import os
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


def repo_root() -> Path:
    # apps/api/src/chatguard_api/db.py -> repo root
    return Path(__file__).resolve().parents[4]


def db_path() -> Path:
    env = os.getenv("CHATGUARD_DB_PATH")
    if env:
        return Path(env)
    return repo_root() / ".data" / "chatguard.db"


def _ensure_parent_dir(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        # If this fails, sqlite will raise a more actionable OperationalError below.
        pass


def _connect() -> sqlite3.Connection:
    path = db_path()
    _ensure_parent_dir(path)

    # Retry once: temp dirs can disappear under concurrent pytest sessions.
    last_err: sqlite3.OperationalError | None = None
    conn: sqlite3.Connection | None = None
    for _attempt in range(2):
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            break
        except sqlite3.OperationalError as e:
            last_err = e
            _ensure_parent_dir(path)
            conn = None
    if conn is None:
        assert last_err is not None
        raise last_err

    conn.row_factory = sqlite3.Row
    # Best-effort WAL mode; some temp dirs / FS setups do not support it.
    try:
        conn.execute("PRAGMA journal_mode = WAL;")
    except sqlite3.OperationalError:
        pass
    conn.execute("PRAGMA busy_timeout = 5000;")
    return conn


def init_db() -> None:
    with _connect() as conn:
        # Blocked sends are recorded by reason code only, never by message text.
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS blocked_messages (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              reason TEXT NOT NULL,
              source TEXT NOT NULL
            );
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_blocked_messages_reason ON blocked_messages(reason);"
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS banned_words (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              word TEXT NOT NULL UNIQUE COLLATE NOCASE,
              created_at TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS admin_audit_events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              endpoint TEXT NOT NULL,
              method TEXT NOT NULL,
              client_ip TEXT NOT NULL,
              action TEXT NOT NULL,
              reason TEXT NOT NULL,
              meta_json TEXT NOT NULL
            );
            """
        )


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def log_blocked_message(*, reason: str, source: str) -> int:
    with _connect() as conn:
        cur = conn.execute(
            "INSERT INTO blocked_messages(ts, reason, source) VALUES (?, ?, ?)",
            (now_iso(), reason, source),
        )
        return int(cur.lastrowid)


def list_blocked_messages(*, limit: int = 100) -> list[dict[str, Any]]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT id, ts, reason, source FROM blocked_messages ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [
        {"id": int(r["id"]), "ts": r["ts"], "reason": r["reason"], "source": r["source"]}
        for r in rows
    ]


def count_blocked_by_reason() -> dict[str, int]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT reason, COUNT(1) AS c FROM blocked_messages GROUP BY reason ORDER BY reason"
        ).fetchall()
    return {r["reason"]: int(r["c"]) for r in rows}


def add_banned_word(word: str) -> dict[str, Any] | None:
    """Insert a banned word. Returns None if it already exists (case-insensitive)."""
    created_at = now_iso()
    with _connect() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO banned_words(word, created_at) VALUES (?, ?)",
                (word, created_at),
            )
        except sqlite3.IntegrityError:
            return None
        return {"id": int(cur.lastrowid), "word": word, "created_at": created_at}


def list_banned_words() -> list[dict[str, Any]]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT id, word, created_at FROM banned_words ORDER BY id ASC"
        ).fetchall()
    return [{"id": int(r["id"]), "word": r["word"], "created_at": r["created_at"]} for r in rows]


def delete_banned_word(word_id: int) -> bool:
    with _connect() as conn:
        cur = conn.execute("DELETE FROM banned_words WHERE id = ?", (word_id,))
        return cur.rowcount > 0


def insert_admin_audit_event(
    *,
    endpoint: str,
    method: str,
    client_ip: str,
    action: str,
    reason: str,
    meta: dict[str, Any],
) -> int:
    with _connect() as conn:
        cur = conn.execute(
            """
            INSERT INTO admin_audit_events(
              ts, endpoint, method, client_ip, action, reason, meta_json
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                now_iso(),
                endpoint,
                method,
                client_ip,
                action,
                reason,
                json.dumps(meta, ensure_ascii=False, separators=(",", ":")),
            ),
        )
        return int(cur.lastrowid)


def list_admin_audit_events(*, limit: int = 100) -> list[dict[str, Any]]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT * FROM admin_audit_events ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
    return [
        {
            "id": int(r["id"]),
            "ts": r["ts"],
            "endpoint": r["endpoint"],
            "method": r["method"],
            "client_ip": r["client_ip"],
            "action": r["action"],
            "reason": r["reason"],
            "meta": json.loads(r["meta_json"]),
        }
        for r in rows
    ]
