"""Column mapping for the session import schema.

The schema has 13 logical fields in a fixed order. A user mapping (as posted by
the mapping form) names the column for each field through ``header0`` ..
``header12``; without one, field *i* is read from column *i*.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

ABSENT = -1

FIELDS: Tuple[str, ...] = (
    "course",
    "groups",
    "sessiondate",
    "from",
    "to",
    "description",
    "repeaton",
    "repeatevery",
    "repeatuntil",
    "studentscanmark",
    "passwordgrp",
    "randompassword",
    "subnet",
)

# Message identifiers for the human labels of each field. The typed schema
# relabels the second column as a free-form session type.
HEADER_LABELS: Dict[str, str] = {
    "course": "course",
    "groups": "groups",
    "sessiondate": "sessiondate",
    "from": "from",
    "to": "to",
    "description": "description",
    "repeaton": "repeaton",
    "repeatevery": "repeatevery",
    "repeatuntil": "repeatuntil",
    "studentscanmark": "studentscanmark",
    "passwordgrp": "passwordgrp",
    "randompassword": "randompassword",
    "subnet": "subnet",
}
TYPED_HEADER_LABELS = dict(HEADER_LABELS, groups="sessiontype")


@dataclass(frozen=True)
class FieldMapping:
    """Immutable field -> column index table, in ``FIELDS`` order."""

    indices: Tuple[int, ...]

    def index(self, field: str) -> int:
        return self.indices[FIELDS.index(field)]

    def read(self, row: Sequence[str], field: str) -> str:
        return get_column_data(row, self.index(field))

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(FIELDS, self.indices))


DEFAULT_MAPPING = FieldMapping(tuple(range(len(FIELDS))))


def get_column_data(row: Sequence[str], index: int) -> str:
    if index < 0:
        return ""
    if index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else value


def _coerce_index(value: Any) -> int:
    if value is None or value == "":
        return ABSENT
    try:
        return int(value)
    except (TypeError, ValueError):
        return ABSENT


def resolve_mapping(user_mapping: Optional[Any] = None) -> FieldMapping:
    """Build the FieldMapping for one import run.

    ``user_mapping`` may be a mapping or an object exposing ``header0`` ..
    ``header12`` (form data). Missing or non-numeric slots map to ``ABSENT``.
    Header correctness is not checked here.
    """
    if not user_mapping:
        return DEFAULT_MAPPING
    indices: List[int] = []
    for slot in range(len(FIELDS)):
        key = f"header{slot}"
        if isinstance(user_mapping, Mapping):
            raw = user_mapping.get(key)
        else:
            raw = getattr(user_mapping, key, None)
        indices.append(_coerce_index(raw))
    return FieldMapping(tuple(indices))


def list_required_headers(typed: bool = False) -> List[str]:
    labels = TYPED_HEADER_LABELS if typed else HEADER_LABELS
    return [labels[f] for f in FIELDS]
