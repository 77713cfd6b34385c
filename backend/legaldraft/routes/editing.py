from fastapi import APIRouter

from ..exceptions import ValidationError
from ..schemas import AiEditRequest, DirectEditRequest, InsertMarkupRequest, SetModeRequest
from ..services import session as sessions
from ..services.editing import EditMode, quick_action_instruction

router = APIRouter()


def _editor(session_id: str):
    return sessions.get_session(session_id).editor


@router.post("/session/{session_id}/edit/begin")
async def begin(session_id: str):
    session = sessions.get_session(session_id)
    sessions.begin_editing(session)
    return session.editor.snapshot()


@router.post("/session/{session_id}/edit/mode")
async def set_mode(session_id: str, payload: SetModeRequest):
    editor = _editor(session_id)
    editor.set_mode(EditMode(payload.mode))
    return editor.snapshot()


@router.post("/session/{session_id}/edit/direct")
async def direct_edit(session_id: str, payload: DirectEditRequest):
    editor = _editor(session_id)
    committed = editor.direct_edit(payload.content)
    return {"committed": committed, **editor.snapshot()}


@router.post("/session/{session_id}/edit/insert")
async def insert_markup(session_id: str, payload: InsertMarkupRequest):
    editor = _editor(session_id)
    editor.insert_markup(payload.start, payload.end, payload.before, payload.after)
    return editor.snapshot()


@router.post("/session/{session_id}/edit/undo")
async def undo(session_id: str):
    editor = _editor(session_id)
    editor.undo()
    return editor.snapshot()


@router.post("/session/{session_id}/edit/redo")
async def redo(session_id: str):
    editor = _editor(session_id)
    editor.redo()
    return editor.snapshot()


@router.post("/session/{session_id}/edit/ai")
async def ai_edit(session_id: str, payload: AiEditRequest):
    editor = _editor(session_id)
    if payload.quick_action:
        instruction = quick_action_instruction(payload.quick_action)
    elif payload.instruction is not None:
        instruction = payload.instruction
    else:
        raise ValidationError("Provide an instruction or a quick action", field="instruction")
    reply = await editor.ai_edit(instruction)
    return {"reply": reply.model_dump(), **editor.snapshot()}


@router.post("/session/{session_id}/edit/apply")
async def apply(session_id: str):
    session = sessions.get_session(session_id)
    draft = sessions.apply_edits(session)
    return {"content": draft.content, **session.editor.snapshot()}


@router.post("/session/{session_id}/edit/cancel")
async def cancel(session_id: str):
    editor = _editor(session_id)
    editor.cancel()
    return editor.snapshot()
