"""FastAPI JSON API for the attendance session importer.

Endpoints:
  GET  /imports/headers -> required headers in column order
  POST /imports {content, encoding, delimiter} -> stage CSV, returns import id and found headers
  POST /imports/{id}/run {mapping, mode, strict} -> import sessions, returns counts and diagnostics
  GET  /imports/{id}/report/xlsx|csv -> diagnostics of the last run
  POST /courses, /courses/{id}/activities, /courses/{id}/groups -> seed reference data
  GET  /courses/{id}/sessions -> stored sessions of the course

Data persisted in SQLite (ATTENDANCE_IMPORT_DB, attendance_import.db by default).
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from ..config import get_log_level
from .audit import _init_audit
from .db import get_store
from .routers import courses as courses_router
from .routers import imports as imports_router

app = FastAPI(title="Attendance Session Import API", version="0.1.0")
logger = logging.getLogger("attendance_import.web")
if not logger.handlers:
    _h = logging.StreamHandler()
    _h.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(message)s"))
    logger.addHandler(_h)
logger.setLevel(get_log_level())


def _init_db():
    get_store().init_db()
    _init_audit()


_init_db()

app.include_router(imports_router.router)
app.include_router(courses_router.router)


def main():  # pragma: no cover
    import uvicorn

    uvicorn.run("attendance_import.web.app:app", host="0.0.0.0", port=8000, reload=True)


if __name__ == "__main__":  # pragma: no cover
    main()
