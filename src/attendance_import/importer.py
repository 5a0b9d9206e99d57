"""Bulk import of attendance sessions from CSV.

Construction stages (or re-opens) the CSV and normalizes every row into a
``SessionRequest``; ``import_sessions`` then resolves course and groups,
expands each request for every attendance activity of the course, drops
duplicates and bulk-inserts the rest.

Construction never raises for bad input: check ``get_error()`` first.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from .committer import CommitResult, SessionCommitter
from .config import get_import_mode, is_strict_mode
from .mapping import list_required_headers, resolve_mapping
from .normalization import ImportSchema, MalformedFieldError, SessionRequest, normalize
from .notify import (
    INVALID_IMPORT_FILE,
    MALFORMED_FIELD,
    NO_GROUPS_RESOLVED,
    REPEAT_RANGE_EMPTY,
    SESSIONS_GENERATED,
    SESSIONS_IMPORTED,
    Event,
    EventBus,
    NotifyQueue,
)
from .progress import NullProgress
from .resolver import ReferenceResolver
from .schedule import expand, repeat_is_degenerate
from .staging import StagedImport, StagingError
from .store import SessionStore

logger = logging.getLogger(__name__)

HEADER_ROWS = 1


class SessionImporter:
    def __init__(
        self,
        store: SessionStore,
        notifier: Optional[NotifyQueue] = None,
        content: Union[bytes, str, None] = None,
        encoding: Optional[str] = "utf-8",
        delimiter: Optional[str] = "comma",
        import_id: Optional[str] = None,
        mapping: Optional[Any] = None,
        schema: Optional[ImportSchema] = None,
        progress=None,
        strict: Optional[bool] = None,
        events: Optional[EventBus] = None,
        staging_dir: Optional[str] = None,
    ):
        self.store = store
        self.notifier = notifier or NotifyQueue()
        self.events = events or EventBus()
        self.progress = progress or NullProgress()
        self.schema = schema or ImportSchema.for_mode(get_import_mode())
        self.strict = is_strict_mode() if strict is None else strict
        self.resolver = ReferenceResolver(store, self.notifier)
        self.committer = SessionCommitter(store, self.notifier)
        self.error = ""
        self.error_params: dict = {}
        self.import_id = ""
        self.found_headers: List[str] = []
        self.requests: List[SessionRequest] = []
        self.skipped_rows = 0
        self.staged: Optional[StagedImport] = None

        try:
            if not import_id:
                if content is None:
                    return
                self.staged = StagedImport.create(content, encoding, delimiter, staging_dir)
            else:
                self.staged = StagedImport(import_id, staging_dir)
        except StagingError as e:
            logger.info(f"Rejected import file: {e}")
            self.fail(INVALID_IMPORT_FILE)
            return
        self.import_id = self.staged.import_id

        if not self.staged.init():
            self.fail(INVALID_IMPORT_FILE)
            self.staged.cleanup()
            return
        self.found_headers = self.staged.columns
        self._read_requests(mapping)

    def _read_requests(self, mapping: Optional[Any]) -> None:
        field_mapping = resolve_mapping(mapping)
        self.progress.start("Processing file")
        for row_number, row in enumerate(self.staged.rows(), start=HEADER_ROWS + 1):
            self.progress.tick()
            try:
                self.requests.append(normalize(row, field_mapping, self.schema, row_number))
            except MalformedFieldError as e:
                params = {"row": row_number, "field": e.field_name, "value": e.value}
                if self.strict:
                    self.progress.finish()
                    self.requests = []
                    self.fail(MALFORMED_FIELD, **params)
                    return
                self.notifier.notify_problem(MALFORMED_FIELD, **params)
                self.skipped_rows += 1
        self.progress.finish()
        if not self.requests:
            self.fail(INVALID_IMPORT_FILE)
            self.staged.cleanup()
        logger.info(
            f"Import {self.import_id}: {len(self.requests)} session requests, "
            f"{self.skipped_rows} malformed rows skipped"
        )

    def fail(self, key: str, **params) -> bool:
        """Store an error for display later."""
        self.error = key
        self.error_params = params
        return False

    def get_error(self) -> str:
        return self.error

    def get_importid(self) -> str:
        return self.import_id

    @staticmethod
    def list_required_headers(schema: Optional[ImportSchema] = None) -> List[str]:
        schema = schema or ImportSchema.for_mode(get_import_mode())
        return list_required_headers(typed=schema.typed)

    def list_found_headers(self) -> List[str]:
        return list(self.found_headers)

    # --------------------- import ---------------------

    def import_sessions(self) -> CommitResult:
        """Create sessions from the normalized requests.

        Emits one summary diagnostic and one ``sessions_imported`` event per call.
        """
        total = CommitResult()
        for request in self.requests:
            total.add(self._import_request(request))

        if total.accepted < 1:
            self.notifier.notify_message(SESSIONS_GENERATED, count=total.accepted)
        else:
            self.notifier.notify_success(SESSIONS_GENERATED, count=total.accepted)
        self.events.trigger(
            Event(SESSIONS_IMPORTED, {"count": total.accepted, "import_id": self.import_id})
        )
        if self.staged is not None and not self.error:
            self.staged.cleanup()
        logger.info(
            f"Import {self.import_id}: {total.accepted} sessions created, "
            f"{total.duplicates} duplicates skipped"
        )
        return total

    def _import_request(self, request: SessionRequest) -> CommitResult:
        result = CommitResult()
        course = self.resolver.resolve_course(request.course)
        if course is None:
            return result
        activities = self.resolver.resolve_activities(course)
        if not activities:
            return result

        group_ids = None
        if request.grouped:
            groups = self.resolver.resolve_groups(course, request.group_names)
            if not groups.ids:
                self.notifier.notify_problem(
                    NO_GROUPS_RESOLVED, course=course.shortname, row=request.row_number
                )
                return result
            group_ids = groups.group_ids()

        if repeat_is_degenerate(request):
            self.notifier.notify_problem(
                REPEAT_RANGE_EMPTY, course=course.shortname, row=request.row_number
            )
            return result

        for activity in activities:
            occurrences = expand(request, activity, group_ids)
            result.add(self.committer.commit(occurrences, course.shortname, activity.name))
        return result
