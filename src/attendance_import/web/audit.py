import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from .db import _connect

logger = logging.getLogger("attendance_import.web")


def _init_audit():
    conn = _connect()
    cur = conn.cursor()
    cur.execute(
        """CREATE TABLE IF NOT EXISTS import_audit (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            import_id TEXT NOT NULL,
            accepted INTEGER NOT NULL,
            duplicates INTEGER NOT NULL,
            diagnostics_json TEXT,
            performed_at TEXT NOT NULL
        )"""
    )
    conn.commit()
    conn.close()


def _record_import_audit(import_id: str, accepted: int, duplicates: int, diagnostics: List[dict]):
    try:
        conn = _connect()
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO import_audit (import_id, accepted, duplicates, diagnostics_json, performed_at) VALUES (?,?,?,?,?)",
            (
                import_id,
                accepted,
                duplicates,
                json.dumps(diagnostics, default=str),
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        conn.commit()
        conn.close()
    except Exception as e:
        logger.warning("Failed recording import audit: %s", e)


def _get_import_audit(import_id: str) -> Optional[dict]:
    conn = _connect()
    cur = conn.cursor()
    cur.execute(
        "SELECT id, import_id, accepted, duplicates, diagnostics_json, performed_at FROM import_audit WHERE import_id=? ORDER BY id DESC LIMIT 1",
        (import_id,),
    )
    row = cur.fetchone()
    conn.close()
    if not row:
        return None
    return {
        "id": row[0],
        "import_id": row[1],
        "accepted": row[2],
        "duplicates": row[3],
        "diagnostics": json.loads(row[4]) if row[4] else [],
        "performed_at": row[5],
    }
