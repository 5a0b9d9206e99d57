"""Diagnostics and completion events emitted by an import run.

Diagnostics carry a message key plus parameters, never rendered prose. The
``NotifyQueue`` collects them in order (and mirrors each one to the log);
the ``EventBus`` fans the completion event out to registered listeners.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

LEVEL_PROBLEM = "problem"
LEVEL_MESSAGE = "message"
LEVEL_SUCCESS = "success"

# message keys
INVALID_IMPORT_FILE = "invalidimportfile"
COURSE_NOT_FOUND = "error:coursenotfound"
COURSE_HAS_NO_ATTENDANCE = "error:coursehasnoattendance"
UNKNOWN_GROUP = "sessionunknowngroup"
NO_GROUPS_RESOLVED = "error:nogroupsresolved"
MALFORMED_FIELD = "error:malformedfield"
REPEAT_RANGE_EMPTY = "error:repeatrangeempty"
DUPLICATE_SESSION = "sessionduplicate"
SESSIONS_GENERATED = "sessionsgenerated"

SESSIONS_IMPORTED = "sessions_imported"


@dataclass(frozen=True)
class Diagnostic:
    level: str
    key: str
    params: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "key": self.key, "params": dict(self.params)}


@dataclass(frozen=True)
class Event:
    name: str
    other: Dict[str, Any] = field(default_factory=dict)


class NotifyQueue:
    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def notify(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if diagnostic.level == LEVEL_PROBLEM:
            logger.warning("%s %s", diagnostic.key, diagnostic.params)
        else:
            logger.info("%s %s", diagnostic.key, diagnostic.params)

    def notify_problem(self, key: str, **params) -> None:
        self.notify(Diagnostic(LEVEL_PROBLEM, key, params))

    def notify_message(self, key: str, **params) -> None:
        self.notify(Diagnostic(LEVEL_MESSAGE, key, params))

    def notify_success(self, key: str, **params) -> None:
        self.notify(Diagnostic(LEVEL_SUCCESS, key, params))

    def by_key(self, key: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.key == key]

    def clear(self) -> None:
        self.diagnostics = []


class EventBus:
    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Event], None]]] = {}
        self.triggered: List[Event] = []

    def listen(self, name: str, listener: Callable[[Event], None]) -> None:
        self._listeners.setdefault(name, []).append(listener)

    def trigger(self, event: Event) -> None:
        self.triggered.append(event)
        logger.debug(f"Event {event.name}: {event.other}")
        for listener in self._listeners.get(event.name, []):
            listener(event)
