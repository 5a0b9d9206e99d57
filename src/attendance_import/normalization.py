"""Row normalization for the session import.

Turns one raw CSV row into a typed ``SessionRequest``. Malformed date and time
cells raise ``MalformedFieldError``; the importer decides whether that skips the
row or fails the whole run.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from dateutil import parser as dtparser

from .mapping import FieldMapping

logger = logging.getLogger(__name__)

SESSION_COMMON = "common"
SESSION_GROUP = "group"

# schema variants
MODE_GROUPED = "grouped"
MODE_TYPED = "typed"
DESCRIPTION_ESCAPED = "escaped"
DESCRIPTION_RAW = "raw"

FORMAT_HTML = 1
GROUP_SEPARATOR = ";"
FALSE_TOKENS = {"", "0", "no", "n", "false", "f", "off"}
TIME_RE = re.compile(r"^\s*(\d{1,2})\s*:\s*(\d{2})(?:\s*:\s*\d{2})?\s*$")


class MalformedFieldError(ValueError):
    def __init__(self, field_name: str, value: str, reason: str = ""):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        msg = f"Malformed value for '{field_name}': {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


@dataclass(frozen=True)
class ImportSchema:
    """Selects grouped vs typed sessions and escaped vs raw descriptions."""

    session_mode: str = MODE_GROUPED
    description_mode: str = DESCRIPTION_ESCAPED

    def __post_init__(self):
        if self.session_mode not in (MODE_GROUPED, MODE_TYPED):
            raise ValueError(f"Unknown session mode: {self.session_mode}")
        if self.description_mode not in (DESCRIPTION_ESCAPED, DESCRIPTION_RAW):
            raise ValueError(f"Unknown description mode: {self.description_mode}")

    @property
    def typed(self) -> bool:
        return self.session_mode == MODE_TYPED

    @classmethod
    def for_mode(cls, mode: str) -> "ImportSchema":
        if mode == MODE_TYPED:
            return cls(MODE_TYPED, DESCRIPTION_RAW)
        return cls(MODE_GROUPED, DESCRIPTION_ESCAPED)


GROUPED_SCHEMA = ImportSchema()
TYPED_SCHEMA = ImportSchema.for_mode(MODE_TYPED)


@dataclass(frozen=True)
class SessionTime:
    hour: int
    minute: int

    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class RichText:
    text: str
    format: int = FORMAT_HTML
    item_id: int = 0


@dataclass(frozen=True)
class RepeatRule:
    enabled: bool = False
    interval_days: int = 0
    until: Optional[date] = None


@dataclass
class SessionRequest:
    course: str
    session_kind: str
    session_date: date
    start: SessionTime
    end: SessionTime
    description: RichText
    repeat: RepeatRule = field(default_factory=RepeatRule)
    group_names: List[str] = field(default_factory=list)
    session_type: Optional[str] = None
    student_can_mark: bool = False
    password_group: bool = False
    random_password: bool = False
    subnet: str = ""
    use_default_subnet: bool = True
    row_number: int = 0

    @property
    def grouped(self) -> bool:
        return self.session_kind == SESSION_GROUP


# ----------------- field parsers -----------------


def parse_time(value: str, field_name: str = "from") -> SessionTime:
    m = TIME_RE.match(value or "")
    if not m:
        raise MalformedFieldError(field_name, value, "expected HH:MM")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise MalformedFieldError(field_name, value, "time out of range")
    return SessionTime(hour, minute)


def parse_date(value: str, field_name: str = "sessiondate") -> date:
    txt = (value or "").strip()
    if not txt:
        raise MalformedFieldError(field_name, value, "empty date")
    # ISO first so 2024-01-02 is never read day-first
    try:
        return date.fromisoformat(txt)
    except ValueError:
        pass
    try:
        return dtparser.parse(txt).date()
    except (ValueError, OverflowError) as e:
        raise MalformedFieldError(field_name, value, str(e))


def parse_flag(value: str) -> bool:
    return (value or "").strip().lower() not in FALSE_TOKENS


def parse_interval(value: str) -> int:
    txt = (value or "").strip()
    if not txt:
        return 0
    try:
        return int(txt)
    except ValueError:
        raise MalformedFieldError("repeatevery", value, "expected whole days")


def split_groups(value: str) -> List[str]:
    names = []
    for name in value.split(GROUP_SEPARATOR):
        name = name.strip()
        if name and name not in names:
            names.append(name)
    return names


def build_description(text: str, mode: str) -> RichText:
    if mode == DESCRIPTION_ESCAPED:
        text = "<p>" + html.escape(text) + "</p>"
    return RichText(text, FORMAT_HTML, 0)


# ----------------- row normalization -----------------


def normalize(
    row: Sequence[str],
    mapping: FieldMapping,
    schema: ImportSchema = GROUPED_SCHEMA,
    row_number: int = 0,
) -> SessionRequest:
    def read(name: str) -> str:
        return mapping.read(row, name)

    course = read("course").strip()
    selector = read("groups").strip()
    group_names: List[str] = []
    session_type = None
    kind = SESSION_COMMON
    if schema.typed:
        session_type = selector or None
    else:
        group_names = split_groups(selector)
        if group_names:
            kind = SESSION_GROUP

    session_date = parse_date(read("sessiondate"))
    start = parse_time(read("from"), "from")
    end = parse_time(read("to"), "to")
    if end.minutes() < start.minutes():
        raise MalformedFieldError("to", read("to"), "session ends before it starts")

    repeat = RepeatRule()
    if parse_flag(read("repeaton")):
        repeat = RepeatRule(
            enabled=True,
            interval_days=parse_interval(read("repeatevery")),
            until=parse_date(read("repeatuntil"), "repeatuntil"),
        )

    subnet = read("subnet").strip()
    request = SessionRequest(
        course=course,
        session_kind=kind,
        session_date=session_date,
        start=start,
        end=end,
        description=build_description(read("description"), schema.description_mode),
        repeat=repeat,
        group_names=group_names,
        session_type=session_type,
        student_can_mark=parse_flag(read("studentscanmark")),
        password_group=parse_flag(read("passwordgrp")),
        random_password=parse_flag(read("randompassword")),
        subnet=subnet,
        use_default_subnet=not subnet,
        row_number=row_number,
    )
    logger.debug(f"Row {row_number}: normalized session request for '{course}'")
    return request
