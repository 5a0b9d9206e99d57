"""Occurrence expansion with logging and safeguards.

Features:
 - One occurrence when the repeat rule is off
 - Repeat every N days from the session date up to and including the cutoff
 - Degenerate rules (interval <= 0, cutoff before start) expand to nothing
 - Grouped requests expand once per resolved group per date
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from .normalization import SessionRequest
from .store import Activity

logger = logging.getLogger(__name__)

COMMON_GROUP_ID = 0
STATUS_SET_DEFAULT = 0


@dataclass
class Occurrence:
    activity_id: int
    group_id: int
    session_date: date
    start_time: str
    end_time: str
    description: str
    description_format: int
    description_item_id: int
    student_can_mark: bool
    password_group: bool
    random_password: bool
    subnet: str
    session_type: Optional[str] = None
    status_set: int = STATUS_SET_DEFAULT

    def as_record(self) -> dict:
        return {
            "attendance_id": self.activity_id,
            "group_id": self.group_id,
            "session_date": self.session_date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "description": self.description,
            "description_format": self.description_format,
            "description_item_id": self.description_item_id,
            "student_can_mark": int(self.student_can_mark),
            "password_group": int(self.password_group),
            "random_password": int(self.random_password),
            "subnet": self.subnet,
            "session_type": self.session_type,
            "status_set": self.status_set,
        }


def repeat_is_degenerate(request: SessionRequest) -> bool:
    rule = request.repeat
    if not rule.enabled:
        return False
    return rule.interval_days <= 0 or rule.until is None or rule.until < request.session_date


def expand_dates(request: SessionRequest) -> List[date]:
    rule = request.repeat
    if not rule.enabled:
        return [request.session_date]
    if repeat_is_degenerate(request):
        logger.debug(
            f"Row {request.row_number}: skipping degenerate repeat rule "
            f"(every {rule.interval_days} days until {rule.until})"
        )
        return []
    dates: List[date] = []
    current = request.session_date
    while True:
        dates.append(current)
        # stepping past the cutoff could overflow date.max
        if (rule.until - current).days < rule.interval_days:
            break
        current += timedelta(days=rule.interval_days)
    return dates


def expand(
    request: SessionRequest,
    activity: Activity,
    group_ids: Optional[List[int]] = None,
) -> List[Occurrence]:
    """Expand one request for one activity into dated occurrences.

    ``group_ids`` lists the resolved groups of a grouped request; ``None`` or an
    empty list produces common sessions.
    """
    subnet = activity.subnet if request.use_default_subnet else request.subnet
    targets = list(group_ids) if group_ids else [COMMON_GROUP_ID]
    results: List[Occurrence] = []
    for session_date in expand_dates(request):
        for gid in targets:
            results.append(
                Occurrence(
                    activity_id=activity.id,
                    group_id=gid,
                    session_date=session_date,
                    start_time=str(request.start),
                    end_time=str(request.end),
                    description=request.description.text,
                    description_format=request.description.format,
                    description_item_id=request.description.item_id,
                    student_can_mark=request.student_can_mark,
                    password_group=request.password_group,
                    random_password=request.random_password,
                    subnet=subnet or "",
                    session_type=request.session_type,
                )
            )
    logger.debug(
        f"Row {request.row_number}: expanded {len(results)} occurrences for activity {activity.id}"
    )
    return results
