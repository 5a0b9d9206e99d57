from types import SimpleNamespace

from attendance_import.mapping import (
    ABSENT,
    DEFAULT_MAPPING,
    FIELDS,
    get_column_data,
    list_required_headers,
    resolve_mapping,
)


def test_default_mapping_reads_field_i_from_column_i():
    row = [f"value{i}" for i in range(len(FIELDS))]
    mapping = resolve_mapping(None)
    assert mapping == DEFAULT_MAPPING
    for i, field in enumerate(FIELDS):
        assert mapping.read(row, field) == f"value{i}"


def test_user_mapping_from_header_slots():
    n = len(FIELDS)
    mapping = resolve_mapping({f"header{i}": n - 1 - i for i in range(n)})
    row = [f"c{i}" for i in range(n)]
    assert mapping.read(row, "course") == f"c{n - 1}"
    assert mapping.read(row, "subnet") == "c0"


def test_user_mapping_from_form_object_and_missing_slots():
    form = SimpleNamespace(header0="3", header1="0")
    mapping = resolve_mapping(form)
    assert mapping.index("course") == 3
    assert mapping.index("groups") == 0
    assert mapping.index("sessiondate") == ABSENT
    assert mapping.read(["g", "x", "y", "MATH101"], "sessiondate") == ""


def test_column_read_edges():
    assert get_column_data(["a"], -1) == ""
    assert get_column_data(["a"], 5) == ""
    assert get_column_data(["a", "b"], 1) == "b"


def test_required_headers_order():
    headers = list_required_headers()
    assert len(headers) == 13
    assert headers[0] == "course"
    assert headers[1] == "groups"
    assert headers[-1] == "subnet"
    assert list_required_headers(typed=True)[1] == "sessiontype"
