import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ...export import diagnostics_csv, diagnostics_xlsx
from ...importer import SessionImporter
from ...normalization import MODE_GROUPED, MODE_TYPED, ImportSchema
from ...notify import DUPLICATE_SESSION, SESSIONS_IMPORTED, EventBus, NotifyQueue
from ...staging import StagedImport, StagingError
from ..audit import _get_import_audit, _record_import_audit
from ..db import get_store
from ..schemas import ImportResult, ImportRun, ImportStage

logger = logging.getLogger("attendance_import.web")

router = APIRouter(prefix="/imports")


@router.get("/headers", response_class=JSONResponse)
def required_headers(mode: str = MODE_GROUPED):
    if mode not in (MODE_GROUPED, MODE_TYPED):
        raise HTTPException(400, f"Unknown mode: {mode}")
    return {"headers": SessionImporter.list_required_headers(ImportSchema.for_mode(mode))}


@router.post("", response_class=JSONResponse, status_code=201)
def stage_import(payload: ImportStage):
    """Stage CSV text; the caller maps the found headers and then runs the import."""
    try:
        staged = StagedImport.create(payload.content, payload.encoding, payload.delimiter)
    except StagingError as e:
        logger.info("Rejected staged import: %s", e)
        raise HTTPException(400, "invalidimportfile")
    staged.init()
    return {"import_id": staged.import_id, "found_headers": staged.columns}


@router.post("/{import_id}/run", response_model=ImportResult)
def run_import(import_id: str, payload: ImportRun):
    if payload.mode is not None and payload.mode not in (MODE_GROUPED, MODE_TYPED):
        raise HTTPException(400, f"Unknown mode: {payload.mode}")
    try:
        staged = StagedImport(import_id)
    except StagingError:
        raise HTTPException(404, "Import not found")
    if not staged.init():
        raise HTTPException(404, "Import not found")
    notifier = NotifyQueue()
    events = EventBus()

    def _record_audit(event):
        diagnostics = [d.as_dict() for d in notifier.diagnostics]
        duplicates = len(notifier.by_key(DUPLICATE_SESSION))
        _record_import_audit(event.other["import_id"], event.other["count"], duplicates, diagnostics)

    events.listen(SESSIONS_IMPORTED, _record_audit)
    importer = SessionImporter(
        get_store(),
        notifier,
        import_id=import_id,
        mapping=payload.mapping,
        schema=ImportSchema.for_mode(payload.mode) if payload.mode else None,
        strict=payload.strict,
        events=events,
    )
    if importer.get_error():
        raise HTTPException(
            400,
            {
                "error": importer.get_error(),
                "params": importer.error_params,
                "diagnostics": [d.as_dict() for d in notifier.diagnostics],
            },
        )
    totals = importer.import_sessions()
    return {
        "import_id": import_id,
        "accepted": totals.accepted,
        "duplicates": totals.duplicates,
        "diagnostics": [d.as_dict() for d in notifier.diagnostics],
    }


def _audit_or_404(import_id: str) -> dict:
    audit = _get_import_audit(import_id)
    if audit is None:
        raise HTTPException(404, "Import not found")
    return audit


@router.get("/{import_id}/report/xlsx")
def export_report_xlsx(import_id: str):
    audit = _audit_or_404(import_id)
    bio = diagnostics_xlsx(audit["diagnostics"])
    filename = f"import_{import_id}_diagnostics.xlsx"
    return StreamingResponse(
        bio,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{import_id}/report/csv")
def export_report_csv(import_id: str):
    audit = _audit_or_404(import_id)
    filename = f"import_{import_id}_diagnostics.csv"
    return Response(
        diagnostics_csv(audit["diagnostics"]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
