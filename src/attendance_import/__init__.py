"""attendance_import package initialization.

Public API surface:
 - SessionImporter: stage a CSV of recurring sessions and import it
 - resolve_mapping: build the field -> column mapping for a run
 - normalize: turn one raw row into a SessionRequest
 - expand: project a request onto dated occurrences for one activity
 - SessionStore: SQLite store the importer reads and writes
"""
from .importer import SessionImporter
from .mapping import resolve_mapping
from .normalization import normalize
from .schedule import expand
from .store import SessionStore

__all__ = ["SessionImporter", "resolve_mapping", "normalize", "expand", "SessionStore"]
