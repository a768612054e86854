import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.config import SEARCH_PAGE_SIZE
from app.database import get_db
from app.models.patient import PatientDetail, PatientListItem, PatientSearchItem, SubmissionRecord
from app.services.auth import require_staff
from app.services.export import export_patients_rows, flatten_patient, render_csv
from app.services.patient_queries import (
    get_patient_detail,
    list_patients,
    list_submissions,
    search_patients,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/patients", tags=["patients"], dependencies=[Depends(require_staff)])


def _csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=list[PatientListItem])
async def get_patients():
    """All patients, newest first."""
    db = await get_db()
    return await list_patients(db)


@router.get("/search", response_model=list[PatientSearchItem])
async def search(q: str = "", limit: int = Query(SEARCH_PAGE_SIZE, ge=1, le=SEARCH_PAGE_SIZE)):
    db = await get_db()
    return await search_patients(db, q, limit=limit)


@router.get("/export")
async def export_all_patients():
    """Summary CSV of every patient."""
    db = await get_db()
    rows = await export_patients_rows(db)
    return _csv_response(render_csv(rows), "patients_export.csv")


@router.get("/{person_id}", response_model=PatientDetail)
async def get_patient(person_id: int):
    """Latest submission for a patient, with every intake section."""
    db = await get_db()
    detail = await get_patient_detail(db, person_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return detail


@router.get("/{person_id}/submissions", response_model=list[SubmissionRecord])
async def get_patient_submissions(person_id: int):
    db = await get_db()
    submissions = await list_submissions(db, person_id)
    if submissions is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return submissions


@router.get("/{person_id}/export")
async def export_patient(person_id: int):
    db = await get_db()
    detail = await get_patient_detail(db, person_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    logger.info("Exporting patient %s", person_id)
    return _csv_response(render_csv([flatten_patient(detail)]), f"patient_{person_id}.csv")
