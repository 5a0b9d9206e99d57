from fastapi.testclient import TestClient

from attendance_import.web.app import app
from attendance_import.web.audit import _get_import_audit

client = TestClient(app)

CSV_TEXT = (
    "Course,Groups,Date,From,To\n"
    "WEB101,Blue,2024-05-06,09:00,10:00\n"
    "WEB101,Green,2024-05-06,09:00,10:00\n"
    "GHOST,,2024-05-06,09:00,10:00\n"
)
MAPPING = {
    "header0": 0,
    "header1": 1,
    "header2": 2,
    "header3": 3,
    "header4": 4,
    "header5": -1,
    "header6": -1,
    "header7": -1,
    "header8": -1,
    "header9": -1,
    "header10": -1,
    "header11": -1,
    "header12": -1,
}


def _seed_course():
    r = client.post("/courses", json={"shortname": "WEB101", "fullname": "Web course"})
    if r.status_code == 409:
        return
    assert r.status_code == 201, r.text
    course_id = r.json()["id"]
    client.post(f"/courses/{course_id}/activities", json={"name": "Attendance"})
    client.post(f"/courses/{course_id}/groups", json={"name": "Blue"})


def test_required_headers_endpoint():
    r = client.get("/imports/headers")
    assert r.status_code == 200
    assert len(r.json()["headers"]) == 13
    assert client.get("/imports/headers?mode=typed").json()["headers"][1] == "sessiontype"
    assert client.get("/imports/headers?mode=bogus").status_code == 400


def test_stage_run_and_report():
    _seed_course()
    r = client.post("/imports", json={"content": CSV_TEXT})
    assert r.status_code == 201, r.text
    data = r.json()
    import_id = data["import_id"]
    assert data["found_headers"] == ["Course", "Groups", "Date", "From", "To"]

    r = client.post(f"/imports/{import_id}/run", json={"mapping": MAPPING})
    assert r.status_code == 200, r.text
    result = r.json()
    keys = [d["key"] for d in result["diagnostics"]]
    assert "sessionunknowngroup" in keys
    assert "error:nogroupsresolved" in keys
    assert "error:coursenotfound" in keys
    assert keys[-1] == "sessionsgenerated"

    report = client.get(f"/imports/{import_id}/report/csv")
    assert report.status_code == 200
    assert report.text.splitlines()[0] == "level,key,params"
    xlsx = client.get(f"/imports/{import_id}/report/xlsx")
    assert xlsx.status_code == 200
    assert xlsx.content[:2] == b"PK"


def test_stage_rejects_invalid_content():
    r = client.post("/imports", json={"content": "a,a\n1,2\n"})
    assert r.status_code == 400


def test_run_unknown_import_is_404():
    assert client.post("/imports/" + "a" * 32 + "/run", json={}).status_code == 404
    assert client.post("/imports/not-an-id/run", json={}).status_code == 404
    assert client.get("/imports/" + "b" * 32 + "/report/csv").status_code == 404


def test_course_endpoints_validate():
    assert client.post("/courses/999999/groups", json={"name": "X"}).status_code == 404
    assert client.get("/courses/999999/sessions").status_code == 404


def test_run_records_audit_from_completion_event():
    _seed_course()
    content = "Course,Groups,Date,From,To\nWEB101,Blue,2024-06-03,11:00,12:00\n"
    for expected_accepted, expected_duplicates in ((1, 0), (0, 1)):
        import_id = client.post("/imports", json={"content": content}).json()["import_id"]
        r = client.post(f"/imports/{import_id}/run", json={"mapping": MAPPING})
        assert r.status_code == 200, r.text
        result = r.json()
        assert (result["accepted"], result["duplicates"]) == (expected_accepted, expected_duplicates)
        audit = _get_import_audit(import_id)
        assert audit["accepted"] == expected_accepted
        assert audit["duplicates"] == expected_duplicates
        assert audit["diagnostics"] == result["diagnostics"]
