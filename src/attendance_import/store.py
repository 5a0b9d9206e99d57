"""SQLite store for courses, attendance activities, groups and sessions.

Only the operations the importer needs (exists / get / insert-many) plus a few
helpers for seeding data. Every call opens its own connection.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .config import get_db_path

logger = logging.getLogger(__name__)

# columns compared when checking for an identical stored session
SESSION_COMPARE_COLUMNS = (
    "attendance_id",
    "group_id",
    "session_date",
    "start_time",
    "end_time",
    "description_format",
    "student_can_mark",
    "password_group",
    "random_password",
    "subnet",
    "session_type",
    "status_set",
)
SESSION_COLUMNS = SESSION_COMPARE_COLUMNS + (
    "description",
    "description_item_id",
    "student_password",
    "time_modified",
)


@dataclass
class Course:
    id: int
    shortname: str
    fullname: str = ""


@dataclass
class Activity:
    id: int
    course_id: int
    name: str
    subnet: str = ""


class SessionStore:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_db_path()

    def _connect(self):
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            """CREATE TABLE IF NOT EXISTS course (id INTEGER PRIMARY KEY AUTOINCREMENT, shortname TEXT NOT NULL UNIQUE, fullname TEXT)"""
        )
        cur.execute(
            """CREATE TABLE IF NOT EXISTS attendance (id INTEGER PRIMARY KEY AUTOINCREMENT, course_id INTEGER NOT NULL, name TEXT NOT NULL, subnet TEXT DEFAULT '')"""
        )
        # group names are unique within a course
        cur.execute(
            """CREATE TABLE IF NOT EXISTS course_group (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                course_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                UNIQUE(course_id, name)
            )"""
        )
        cur.execute(
            """CREATE TABLE IF NOT EXISTS attendance_session (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                attendance_id INTEGER NOT NULL,
                group_id INTEGER NOT NULL DEFAULT 0, -- 0 = common session
                session_date TEXT NOT NULL, -- ISO date
                start_time TEXT NOT NULL, -- HH:MM
                end_time TEXT NOT NULL,
                description TEXT,
                description_format INTEGER,
                description_item_id INTEGER,
                student_can_mark INTEGER DEFAULT 0,
                password_group INTEGER DEFAULT 0,
                random_password INTEGER DEFAULT 0,
                student_password TEXT DEFAULT '',
                subnet TEXT DEFAULT '',
                session_type TEXT,
                status_set INTEGER DEFAULT 0,
                time_modified TEXT
            )"""
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_session_lookup ON attendance_session(attendance_id, session_date)"
        )
        conn.commit()
        conn.close()

    # --------------------- courses ---------------------

    def course_exists(self, shortname: str) -> bool:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("SELECT 1 FROM course WHERE shortname=?", (shortname,))
        ok = cur.fetchone() is not None
        conn.close()
        return ok

    def get_course(self, shortname: str) -> Optional[Course]:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            "SELECT id,shortname,fullname FROM course WHERE shortname=?", (shortname,)
        )
        row = cur.fetchone()
        conn.close()
        if not row:
            return None
        return Course(row[0], row[1], row[2] or "")

    def add_course(self, shortname: str, fullname: str = "") -> int:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO course (shortname,fullname) VALUES (?,?)", (shortname, fullname)
        )
        course_id = cur.lastrowid
        conn.commit()
        conn.close()
        return course_id

    # --------------------- activities ---------------------

    def list_activities(self, course_id: int) -> List[Activity]:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            "SELECT id,course_id,name,subnet FROM attendance WHERE course_id=? ORDER BY id",
            (course_id,),
        )
        rows = [Activity(r[0], r[1], r[2], r[3] or "") for r in cur.fetchall()]
        conn.close()
        return rows

    def add_activity(self, course_id: int, name: str, subnet: str = "") -> int:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO attendance (course_id,name,subnet) VALUES (?,?,?)",
            (course_id, name, subnet),
        )
        activity_id = cur.lastrowid
        conn.commit()
        conn.close()
        return activity_id

    # --------------------- groups ---------------------

    def get_group_id(self, course_id: int, name: str) -> Optional[int]:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            "SELECT id FROM course_group WHERE course_id=? AND name=?", (course_id, name)
        )
        row = cur.fetchone()
        conn.close()
        return row[0] if row else None

    def add_group(self, course_id: int, name: str) -> int:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO course_group (course_id,name) VALUES (?,?)", (course_id, name)
        )
        group_id = cur.lastrowid
        conn.commit()
        conn.close()
        return group_id

    # --------------------- sessions ---------------------

    def session_exists(self, record: Dict[str, Any]) -> bool:
        # IS instead of = so NULL session types compare equal
        where = " AND ".join(f"{c} IS ?" for c in SESSION_COMPARE_COLUMNS)
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            f"SELECT 1 FROM attendance_session WHERE {where} LIMIT 1",
            tuple(record.get(c) for c in SESSION_COMPARE_COLUMNS),
        )
        ok = cur.fetchone() is not None
        conn.close()
        return ok

    def insert_sessions(self, records: Iterable[Dict[str, Any]]) -> int:
        rows = [tuple(r.get(c) for c in SESSION_COLUMNS) for r in records]
        if not rows:
            return 0
        placeholders = ",".join("?" for _ in SESSION_COLUMNS)
        conn = self._connect()
        cur = conn.cursor()
        cur.executemany(
            f"INSERT INTO attendance_session ({','.join(SESSION_COLUMNS)}) VALUES ({placeholders})",
            rows,
        )
        conn.commit()
        conn.close()
        logger.debug(f"Inserted {len(rows)} sessions")
        return len(rows)

    def list_sessions(self, attendance_id: Optional[int] = None) -> List[Dict[str, Any]]:
        conn = self._connect()
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        if attendance_id is None:
            cur.execute("SELECT * FROM attendance_session ORDER BY id")
        else:
            cur.execute(
                "SELECT * FROM attendance_session WHERE attendance_id=? ORDER BY id",
                (attendance_id,),
            )
        rows = [dict(r) for r in cur.fetchall()]
        conn.close()
        return rows

    def count_sessions(self) -> int:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("SELECT COUNT(*) FROM attendance_session")
        n = cur.fetchone()[0]
        conn.close()
        return n
