import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException
from pydantic import ValidationError

from app.database import get_db
from app.models.intake import FormSessionResponse, IntakeSnapshot, SubmissionResult
from app.services.form_state import DraftSubmittingError, form_store
from app.services.submission import SubmissionError, submit_intake

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/intake", tags=["intake"])

SUBMISSION_FAILED = "Submission error. Please try again."


def _validation_detail(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


async def _submit(form_data: dict[str, Any]) -> SubmissionResult:
    try:
        snapshot = IntakeSnapshot.from_form_data(form_data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e)) from None

    db = await get_db()
    try:
        return await submit_intake(db, snapshot)
    except SubmissionError:
        raise HTTPException(status_code=500, detail=SUBMISSION_FAILED) from None


@router.post("/sessions", response_model=FormSessionResponse)
async def create_session(initial: dict[str, Any] | None = Body(None)):
    """Start a new intake draft, optionally pre-filled."""
    return form_store.create(initial).to_response()


@router.get("/sessions/{session_id}", response_model=FormSessionResponse)
async def get_session(session_id: str):
    try:
        return form_store.get(session_id).to_response()
    except KeyError:
        raise HTTPException(status_code=404, detail="Intake session not found") from None


@router.patch("/sessions/{session_id}", response_model=FormSessionResponse)
async def update_session(session_id: str, patch: dict[str, Any] = Body(...)):
    """Merge a tab's fields into the draft. Later writes to a key win."""
    try:
        return form_store.update_form_data(session_id, patch).to_response()
    except KeyError:
        raise HTTPException(status_code=404, detail="Intake session not found") from None


@router.delete("/sessions/{session_id}")
async def discard_session(session_id: str):
    form_store.discard(session_id)
    return {"discarded": session_id}


@router.post("/sessions/{session_id}/submit", response_model=SubmissionResult)
async def submit_session(session_id: str):
    """Persist the draft; it is dropped only after a successful write."""
    try:
        session = form_store.begin_submit(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Intake session not found") from None
    except DraftSubmittingError:
        raise HTTPException(status_code=409, detail="Submission already in progress") from None

    try:
        result = await _submit(dict(session.form_data))
    except BaseException:
        logger.info("Keeping intake draft %s after rejected submission", session_id)
        form_store.end_submit(session_id, succeeded=False)
        raise
    form_store.end_submit(session_id, succeeded=True)
    return result


@router.post("", response_model=SubmissionResult)
async def submit_form(form_data: dict[str, Any] = Body(...)):
    """One-shot submit of a complete flat form."""
    return await _submit(form_data)
