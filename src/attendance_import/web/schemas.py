from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ImportStage(BaseModel):
    content: str
    encoding: Optional[str] = "utf-8"
    delimiter: Optional[str] = "comma"


class ImportRun(BaseModel):
    mapping: Optional[Dict[str, int]] = None
    mode: Optional[str] = None
    strict: Optional[bool] = None


class CourseCreate(BaseModel):
    shortname: str
    fullname: Optional[str] = None


class ActivityCreate(BaseModel):
    name: str
    subnet: Optional[str] = None


class GroupCreate(BaseModel):
    name: str


class DiagnosticOut(BaseModel):
    level: str
    key: str
    params: Dict[str, Any] = {}


class ImportResult(BaseModel):
    import_id: str
    accepted: int
    duplicates: int
    diagnostics: List[DiagnosticOut]
