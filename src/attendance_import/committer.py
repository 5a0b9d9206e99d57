"""Duplicate filtering and bulk persistence of expanded occurrences."""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from .notify import DUPLICATE_SESSION, NotifyQueue
from .schedule import Occurrence
from .store import SESSION_COMPARE_COLUMNS, SessionStore

logger = logging.getLogger(__name__)

PASSWORD_LENGTH = 5
PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class CommitResult:
    accepted: int = 0
    duplicates: int = 0

    def add(self, other: "CommitResult") -> None:
        self.accepted += other.accepted
        self.duplicates += other.duplicates


def random_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class SessionCommitter:
    def __init__(self, store: SessionStore, notifier: NotifyQueue):
        self.store = store
        self.notifier = notifier

    def commit(
        self, occurrences: List[Occurrence], course: str = "", activity: str = ""
    ) -> CommitResult:
        """Persist the occurrences of one activity, dropping duplicates.

        Duplicates are checked against stored sessions and against earlier
        occurrences of the same batch; the survivors go in one bulk insert.
        """
        result = CommitResult()
        accepted = []
        seen = set()
        now = datetime.now(timezone.utc).isoformat()
        for occ in occurrences:
            record = occ.as_record()
            key = tuple(record[c] for c in SESSION_COMPARE_COLUMNS)
            if key in seen or self.store.session_exists(record):
                self.notifier.notify_message(DUPLICATE_SESSION, course=course, activity=activity)
                result.duplicates += 1
                continue
            seen.add(key)
            record["student_password"] = random_password() if occ.random_password else ""
            record["time_modified"] = now
            accepted.append(record)
        if accepted:
            self.store.insert_sessions(accepted)
        result.accepted = len(accepted)
        logger.debug(
            f"Activity '{activity}': {result.accepted} accepted, {result.duplicates} duplicates"
        )
        return result
