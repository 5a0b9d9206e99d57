"""Pytest configuration isolating tests from a real attendance database.

Sets ATTENDANCE_IMPORT_DB and ATTENDANCE_IMPORT_STAGING BEFORE the web app is
imported so every connection and staged file lands in a throwaway directory.
"""

import os
import tempfile
from pathlib import Path

import pytest

TEST_ROOT = Path(tempfile.mkdtemp(prefix="attendance_import_tests_"))
os.environ.setdefault("ATTENDANCE_IMPORT_DB", str(TEST_ROOT / "attendance_import_tests.db"))
os.environ.setdefault("ATTENDANCE_IMPORT_STAGING", str(TEST_ROOT / "staging"))

from attendance_import.store import SessionStore  # noqa: E402


@pytest.fixture
def store(tmp_path):
    """Fresh store with MATH101 (one activity, two groups) and EMPTY101 (no activity)."""
    s = SessionStore(str(tmp_path / "store.db"))
    s.init_db()
    math = s.add_course("MATH101", "Mathematics 101")
    s.add_activity(math, "Attendance", "10.0.0.0/8")
    s.add_group(math, "Group A")
    s.add_group(math, "Group B")
    s.add_course("EMPTY101", "No attendance here")
    return s


@pytest.fixture
def staging_dir(tmp_path):
    return str(tmp_path / "staging")
