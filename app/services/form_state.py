import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Mapping

from app.config import INTAKE_DRAFT_TTL_SECONDS
from app.models.intake import FormSessionResponse, IntakeSnapshot

logger = logging.getLogger(__name__)


class DraftSubmittingError(Exception):
    """The draft already has a submission in flight."""


@dataclass
class FormSession:
    session_id: str
    form_data: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""
    submitting: bool = False

    def to_response(self) -> FormSessionResponse:
        return FormSessionResponse(
            session_id=self.session_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            form_data=dict(self.form_data),
        )


class FormStateStore:
    """In-memory intake drafts, one flat key/value bag per session.

    Tabs send shallow patches; the last write for a key wins and nothing is
    validated until the draft is turned into an ``IntakeSnapshot``. Drafts
    idle for longer than ``ttl_seconds`` are evicted on the next create/get.
    """

    def __init__(self, ttl_seconds: int = INTAKE_DRAFT_TTL_SECONDS) -> None:
        self._sessions: dict[str, FormSession] = {}
        self.ttl = timedelta(seconds=ttl_seconds)

    def _evict_expired(self) -> None:
        cutoff = datetime.now(UTC) - self.ttl
        expired = [
            sid for sid, s in self._sessions.items()
            if not s.submitting and datetime.fromisoformat(s.updated_at) < cutoff
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Evicted %d idle intake drafts", len(expired))

    def create(self, initial: Mapping[str, Any] | None = None) -> FormSession:
        self._evict_expired()
        now = datetime.now(UTC).isoformat()
        session = FormSession(
            session_id=str(uuid.uuid4()),
            form_data=dict(initial or {}),
            created_at=now,
            updated_at=now,
        )
        self._sessions[session.session_id] = session
        logger.info("Created intake draft %s", session.session_id)
        return session

    def get(self, session_id: str) -> FormSession:
        """Return the draft; raises KeyError for unknown or expired sessions."""
        self._evict_expired()
        return self._sessions[session_id]

    def update_form_data(self, session_id: str, patch: Mapping[str, Any]) -> FormSession:
        session = self.get(session_id)
        session.form_data = {**session.form_data, **patch}
        session.updated_at = datetime.now(UTC).isoformat()
        return session

    def snapshot(self, session_id: str) -> IntakeSnapshot:
        return IntakeSnapshot.from_form_data(self.get(session_id).form_data)

    def begin_submit(self, session_id: str) -> FormSession:
        """Claim the draft for one submission; a second claim raises DraftSubmittingError."""
        session = self.get(session_id)
        if session.submitting:
            raise DraftSubmittingError(session_id)
        session.submitting = True
        return session

    def end_submit(self, session_id: str, succeeded: bool) -> None:
        if succeeded:
            self.discard(session_id)
            return
        session = self._sessions.get(session_id)
        if session is not None:
            session.submitting = False
            session.updated_at = datetime.now(UTC).isoformat()

    def discard(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("Discarded intake draft %s", session_id)

    def __len__(self) -> int:
        return len(self._sessions)


form_store = FormStateStore()
