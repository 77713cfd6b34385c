import uuid
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..config import DEFAULT_HISTORY_COMMIT_THRESHOLD, prompt_text
from ..exceptions import EditInProgressError, SessionNotFoundError, SessionStateError
from ..reference import (
    CUSTOM_DOCUMENT_TYPE,
    get_language,
    resolve_jurisdiction,
    validate_document_type,
)
from ..schemas import ChatMessage, GenerationRequest
from .chat import ChatSession
from .editing import EditingSession
from .generation import custom_chat_turn, generate_draft
from .history import Draft
from .title import document_title, suggest_document_title

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_GREETING = (
    "Hello! I'll help you create a custom legal document. Please describe what kind of "
    "document you need, who the parties are, and the key terms you want included."
)


@dataclass
class DraftingSession:
    """
    One document being drafted: its request, the custom-drafting chat (custom
    documents only), the authoritative draft and its editing session.
    """
    session_id: str
    request: GenerationRequest
    editor: EditingSession
    custom_chat: Optional[ChatSession] = None
    draft: Optional[Draft] = None
    warnings: List[str] = field(default_factory=list)
    missing_required: Tuple[str, ...] = ()
    suggested_title: str = ""
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    # set while a generation or chat call is in flight
    busy: bool = False

    @property
    def is_custom(self) -> bool:
        return self.request.document_type == CUSTOM_DOCUMENT_TYPE

    @property
    def title(self) -> str:
        request = self.request
        if self.is_custom and not request.custom_title and self.suggested_title:
            request = request.model_copy(update={"custom_title": self.suggested_title})
        return document_title(request)

    def summary(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "document_type": self.request.document_type,
            "language": self.request.language,
            "country": self.request.country,
            "title": self.title,
            "has_draft": self.draft is not None,
            "editing": self.editor.is_editing,
            "busy": self.busy,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.summary()
        data.update({
            "request": self.request.model_dump(),
            "chat": [m.model_dump() for m in self.custom_chat.messages] if self.custom_chat else [],
            "suggested_title": self.suggested_title,
            "content": self.draft.content if self.draft else None,
            "warnings": list(self.warnings),
            "missing_required": list(self.missing_required),
            "editor": self.editor.snapshot(),
        })
        return data


SESSIONS: Dict[str, DraftingSession] = {}


def start_session(
    request: GenerationRequest,
    *,
    service,
    commit_threshold: int = DEFAULT_HISTORY_COMMIT_THRESHOLD,
) -> DraftingSession:
    """Register a new drafting session; type, language and jurisdiction are checked up front."""
    document_type = validate_document_type(request.document_type)
    language = get_language(request.language).code
    context = resolve_jurisdiction(request.country, request.jurisdiction)
    request = request.model_copy(
        update={
            "document_type": document_type,
            "language": language,
            "country": context.country_code,
            "jurisdiction": context.jurisdiction,
        }
    )

    session = DraftingSession(
        session_id=str(uuid.uuid4()),
        request=request,
        editor=EditingSession(service, commit_threshold=commit_threshold),
    )
    if session.is_custom:
        greeting = prompt_text(service.settings, "greetings", "custom", DEFAULT_CUSTOM_GREETING)
        session.custom_chat = ChatSession.seeded(greeting.strip())
        for message in request.chat_history:
            if message.role == "user":
                session.custom_chat.append_user(message.content)
            else:
                session.custom_chat.append_assistant(message.content)

    SESSIONS[session.session_id] = session
    logger.info(f"Started drafting session {session.session_id} ({document_type}, {language})")
    return session


def get_session(session_id: str) -> DraftingSession:
    session = SESSIONS.get(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


def list_sessions() -> List[Dict[str, Any]]:
    return [s.summary() for s in SESSIONS.values()]


def discard_session(session_id: str) -> None:
    """Abandon a session; its draft, history and transcripts are dropped."""
    if SESSIONS.pop(session_id, None) is None:
        raise SessionNotFoundError(session_id)
    logger.info(f"Discarded drafting session {session_id}")


def _require_idle(session: DraftingSession) -> None:
    if session.busy:
        raise EditInProgressError("A generation or chat request is already in progress for this session")


async def chat(session: DraftingSession, message: str, *, service) -> ChatMessage:
    """One custom-drafting chat turn; the first user turn also suggests a title."""
    if not session.is_custom:
        raise SessionStateError("Only custom documents have a drafting chat")
    _require_idle(session)
    first_turn = not session.custom_chat.has_user_turn()
    session.busy = True
    try:
        reply = await custom_chat_turn(
            session.custom_chat, message, language=session.request.language, service=service
        )
        if first_turn and not session.request.custom_title:
            session.suggested_title = await suggest_document_title(
                user_turns=session.custom_chat.user_turns,
                service=service,
            )
    finally:
        session.busy = False
    return reply


async def generate(
    session: DraftingSession,
    *,
    service,
    store=None,
    today: Optional[date] = None,
) -> Draft:
    """
    Generate (or regenerate) the session's draft.

    Refused while an editing session is open or another call is in flight;
    the authoritative draft is only replaced when generation succeeds.
    """
    if session.editor.is_editing:
        raise SessionStateError("Apply or cancel the current edits before regenerating")
    _require_idle(session)

    request = session.request
    if session.is_custom:
        update: Dict[str, Any] = {"chat_history": list(session.custom_chat.messages)}
        if not request.custom_title and session.suggested_title:
            update["custom_title"] = session.suggested_title
        request = request.model_copy(update=update)

    session.busy = True
    try:
        result = await generate_draft(request, service=service, store=store, today=today)
    finally:
        session.busy = False
    session.draft = result.draft
    session.warnings = result.warnings
    session.missing_required = result.missing_required
    return result.draft


def begin_editing(session: DraftingSession) -> None:
    _require_idle(session)
    if session.draft is None:
        raise SessionStateError("Generate a draft before editing")
    session.editor.begin(session.draft)


def apply_edits(session: DraftingSession) -> Draft:
    session.draft = session.editor.apply()
    return session.draft


def finalize_session(session_id: str) -> Dict[str, Any]:
    """
    Build the storage hand-off payload and discard the session.

    Required template fields that were never bound are reported in the
    payload; they do not block finalization.
    """
    session = get_session(session_id)
    _require_idle(session)
    if session.draft is None:
        raise SessionStateError("Nothing to finalize: no draft has been generated")
    if session.editor.is_editing:
        raise SessionStateError("Apply or cancel the current edits before finalizing")

    payload = {
        "title": session.title,
        "document_type": session.request.document_type,
        "language": session.draft.language,
        "country": session.request.country,
        "jurisdiction": session.request.jurisdiction,
        "content": session.draft.content,
        "parties": session.request.parties.model_dump(),
        "missing_required": list(session.missing_required),
    }
    discard_session(session_id)
    return payload
