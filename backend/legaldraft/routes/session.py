from fastapi import APIRouter, Request

from ..schemas import ChatRequest, StartSessionRequest
from ..services import session as sessions
from ..services.assembly import assemble_document

router = APIRouter()


@router.post("/session/start")
async def start_session(payload: StartSessionRequest, request: Request):
    state = request.app.state
    session = sessions.start_session(
        payload.request,
        service=state.text_service,
        commit_threshold=state.settings.history_commit_threshold,
    )
    return session.to_dict()


@router.get("/session/list")
async def list_sessions():
    return {"sessions": sessions.list_sessions()}


@router.get("/session/{session_id}")
async def get_session(session_id: str):
    return sessions.get_session(session_id).to_dict()


@router.post("/session/{session_id}/chat")
async def chat(session_id: str, payload: ChatRequest, request: Request):
    session = sessions.get_session(session_id)
    reply = await sessions.chat(session, payload.message, service=request.app.state.text_service)
    return {
        "reply": reply.model_dump(),
        "suggested_title": session.suggested_title,
        "chat": [m.model_dump() for m in session.custom_chat.messages],
    }


@router.post("/session/{session_id}/generate")
async def generate(session_id: str, request: Request):
    session = sessions.get_session(session_id)
    await sessions.generate(
        session,
        service=request.app.state.text_service,
        store=request.app.state.templates,
    )
    return session.to_dict()


@router.get("/session/{session_id}/export")
async def export(session_id: str):
    session = sessions.get_session(session_id)
    if session.draft is None:
        return {"document": None}
    document = assemble_document(
        session.request,
        session.draft.content,
        title=session.title,
        language=session.draft.language,
    )
    return {"document": document.model_dump()}


@router.post("/session/{session_id}/finalize")
async def finalize(session_id: str):
    return {"document": sessions.finalize_session(session_id)}


@router.delete("/session/{session_id}")
async def discard(session_id: str):
    sessions.discard_session(session_id)
    return {"ok": True}
