"""Resolve human-readable course and group references to store identifiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .notify import COURSE_HAS_NO_ATTENDANCE, COURSE_NOT_FOUND, UNKNOWN_GROUP, NotifyQueue
from .store import Activity, Course, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class ResolvedGroups:
    ids: Dict[str, int] = field(default_factory=dict)
    unresolved: List[str] = field(default_factory=list)

    def group_ids(self) -> List[int]:
        return list(self.ids.values())


class ReferenceResolver:
    def __init__(self, store: SessionStore, notifier: NotifyQueue):
        self.store = store
        self.notifier = notifier

    def resolve_course(self, shortname: str) -> Optional[Course]:
        course = self.store.get_course(shortname) if shortname else None
        if course is None:
            self.notifier.notify_problem(COURSE_NOT_FOUND, course=shortname)
        return course

    def resolve_activities(self, course: Course) -> List[Activity]:
        activities = self.store.list_activities(course.id)
        if not activities:
            self.notifier.notify_problem(COURSE_HAS_NO_ATTENDANCE, course=course.shortname)
        return activities

    def resolve_groups(self, course: Course, names: List[str]) -> ResolvedGroups:
        resolved = ResolvedGroups()
        for name in names:
            gid = self.store.get_group_id(course.id, name)
            if gid is None:
                self.notifier.notify_problem(UNKNOWN_GROUP, group=name, course=course.shortname)
                resolved.unresolved.append(name)
            else:
                resolved.ids[name] = gid
        logger.debug(
            f"Course {course.shortname}: resolved {len(resolved.ids)} of {len(names)} groups"
        )
        return resolved
