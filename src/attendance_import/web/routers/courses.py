import sqlite3

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from ..db import _connect, get_store
from ..schemas import ActivityCreate, CourseCreate, GroupCreate

router = APIRouter(prefix="/courses")


def _course_exists(course_id: int) -> bool:
    conn = _connect()
    cur = conn.cursor()
    cur.execute("SELECT 1 FROM course WHERE id=?", (course_id,))
    ok = cur.fetchone() is not None
    conn.close()
    return ok


@router.post("", response_class=JSONResponse, status_code=201)
def create_course(payload: CourseCreate):
    shortname = payload.shortname.strip()
    if not shortname:
        raise HTTPException(400, "shortname required")
    try:
        course_id = get_store().add_course(shortname, payload.fullname or "")
    except sqlite3.IntegrityError:
        raise HTTPException(409, "Course shortname already exists")
    return {"id": course_id, "shortname": shortname}


@router.post("/{course_id}/activities", response_class=JSONResponse, status_code=201)
def create_activity(course_id: int, payload: ActivityCreate):
    if not _course_exists(course_id):
        raise HTTPException(404, "Course not found")
    activity_id = get_store().add_activity(course_id, payload.name, payload.subnet or "")
    return {"id": activity_id, "course_id": course_id, "name": payload.name}


@router.post("/{course_id}/groups", response_class=JSONResponse, status_code=201)
def create_group(course_id: int, payload: GroupCreate):
    if not _course_exists(course_id):
        raise HTTPException(404, "Course not found")
    try:
        group_id = get_store().add_group(course_id, payload.name)
    except sqlite3.IntegrityError:
        raise HTTPException(409, "Group name already exists in course")
    return {"id": group_id, "course_id": course_id, "name": payload.name}


@router.get("/{course_id}/sessions", response_class=JSONResponse)
def list_course_sessions(course_id: int):
    if not _course_exists(course_id):
        raise HTTPException(404, "Course not found")
    store = get_store()
    rows = []
    for activity in store.list_activities(course_id):
        rows.extend(store.list_sessions(activity.id))
    return JSONResponse(rows)
