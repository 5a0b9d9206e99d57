from datetime import date

import pytest

from attendance_import.mapping import DEFAULT_MAPPING, FIELDS
from attendance_import.normalization import (
    SESSION_COMMON,
    SESSION_GROUP,
    TYPED_SCHEMA,
    MalformedFieldError,
    SessionTime,
    normalize,
    parse_date,
    parse_flag,
    parse_time,
)


def _row(**values):
    data = {
        "course": "MATH101",
        "groups": "",
        "sessiondate": "2024-01-01",
        "from": "09:00",
        "to": "10:30",
        "description": "Lecture",
    }
    data.update(values)
    return [data.get(f, "") for f in FIELDS]


def test_parse_time():
    assert parse_time("09:05") == SessionTime(9, 5)
    assert parse_time(" 7:30:00 ") == SessionTime(7, 30)
    assert str(parse_time("7:05")) == "07:05"


@pytest.mark.parametrize("value", ["0900", "", "9", "7:5", "25:00", "10:75", "ab:cd"])
def test_parse_time_malformed(value):
    with pytest.raises(MalformedFieldError) as exc:
        parse_time(value, "to")
    assert exc.value.field_name == "to"


def test_parse_date():
    assert parse_date("2024-01-02") == date(2024, 1, 2)
    assert parse_date("March 5, 2024") == date(2024, 3, 5)
    with pytest.raises(MalformedFieldError):
        parse_date("not a date")
    with pytest.raises(MalformedFieldError):
        parse_date("")


def test_parse_flag():
    assert parse_flag("1") and parse_flag("Yes") and parse_flag("true")
    assert not parse_flag("") and not parse_flag("0") and not parse_flag("No")


def test_normalize_grouped_row():
    req = normalize(
        _row(groups="Group A; Group B;;Group A", description="Intro & lab", subnet=""),
        DEFAULT_MAPPING,
        row_number=2,
    )
    assert req.course == "MATH101"
    assert req.session_kind == SESSION_GROUP
    assert req.group_names == ["Group A", "Group B"]
    assert req.session_date == date(2024, 1, 1)
    assert req.start == SessionTime(9, 0)
    assert req.end == SessionTime(10, 30)
    assert req.description.text == "<p>Intro &amp; lab</p>"
    assert req.description.item_id == 0
    assert req.use_default_subnet is True
    assert req.subnet == ""
    assert req.repeat.enabled is False
    assert req.row_number == 2


def test_normalize_common_row_with_subnet_and_flags():
    req = normalize(
        _row(subnet="192.168.1.0/24", studentscanmark="1", randompassword="yes"),
        DEFAULT_MAPPING,
    )
    assert req.session_kind == SESSION_COMMON
    assert req.group_names == []
    assert req.subnet == "192.168.1.0/24"
    assert req.use_default_subnet is False
    assert req.student_can_mark is True
    assert req.random_password is True
    assert req.password_group is False


def test_normalize_typed_schema_passes_type_and_raw_description():
    req = normalize(_row(groups="Lab", description="<b>raw</b>"), DEFAULT_MAPPING, TYPED_SCHEMA)
    assert req.session_kind == SESSION_COMMON
    assert req.session_type == "Lab"
    assert req.group_names == []
    assert req.description.text == "<b>raw</b>"


def test_normalize_repeat_rule():
    req = normalize(
        _row(repeaton="1", repeatevery="7", repeatuntil="2024-01-22"), DEFAULT_MAPPING
    )
    assert req.repeat.enabled
    assert req.repeat.interval_days == 7
    assert req.repeat.until == date(2024, 1, 22)


def test_normalize_ignores_repeat_columns_when_off():
    req = normalize(_row(repeaton="0", repeatevery="x", repeatuntil="junk"), DEFAULT_MAPPING)
    assert not req.repeat.enabled


def test_normalize_is_idempotent():
    row = _row(groups="Group A", repeaton="1", repeatevery="7", repeatuntil="2024-02-01")
    assert normalize(row, DEFAULT_MAPPING) == normalize(row, DEFAULT_MAPPING)


@pytest.mark.parametrize(
    "values,field",
    [
        ({"from": "9am"}, "from"),
        ({"to": "8:00"}, "to"),
        ({"sessiondate": "someday"}, "sessiondate"),
        ({"repeaton": "1", "repeatevery": "weekly", "repeatuntil": "2024-02-01"}, "repeatevery"),
        ({"repeaton": "1", "repeatevery": "7", "repeatuntil": ""}, "repeatuntil"),
    ],
)
def test_normalize_malformed_fields(values, field):
    with pytest.raises(MalformedFieldError) as exc:
        normalize(_row(**values), DEFAULT_MAPPING)
    assert exc.value.field_name == field
