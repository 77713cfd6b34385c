"""
Editing Session

Refines a Draft through direct text edits and natural-language ("AI") edits
while keeping a linear undo/redo history.

States:
    IDLE --begin--> EDITING --apply/cancel--> IDLE

Inside EDITING the sub-mode (DIRECT or AI_ASSISTED) can be toggled at any
time without touching the in-progress content.
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..config import (
    DEFAULT_EDITING_CONTEXT,
    DEFAULT_HISTORY_COMMIT_THRESHOLD,
    prompt_text,
)
from ..exceptions import (
    ConfigurationError,
    EditInProgressError,
    GenerationError,
    SessionStateError,
    ValidationError,
)
from ..schemas import ChatMessage
from .chat import ChatSession
from .history import Draft, EditHistory
from .llm import normalize_document_text

logger = logging.getLogger(__name__)

DEFAULT_EDIT_GREETING = (
    "I'm ready to help you edit this document. You can ask me to add or remove clauses, "
    "change specific terms or amounts, make the language more formal or simple, or fix any "
    "errors. What would you like to change?"
)
DEFAULT_EDIT_APPLIED = "I've updated the document based on your request. Would you like any other modifications?"
DEFAULT_EDIT_FAILED = (
    "I encountered an error while editing. Please try again or make the changes manually "
    "in the text editor."
)

# Quick actions only pre-fill the instruction text of an AI edit.
QUICK_ACTIONS: Mapping[str, str] = MappingProxyType({
    "more_formal": "Make the language more formal",
    "simplify": "Simplify the language",
    "add_confidentiality": "Add a confidentiality clause",
    "add_dispute_resolution": "Add a dispute resolution clause",
    "add_penalty": "Add penalty for breach of contract",
})


def quick_action_instruction(key: str) -> str:
    try:
        return QUICK_ACTIONS[key]
    except KeyError:
        raise ValidationError(
            f"Unknown quick action '{key}'. Valid actions: {list(QUICK_ACTIONS)}",
            field="quick_action",
        ) from None


class EditState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


class EditMode(str, Enum):
    DIRECT = "direct"
    AI_ASSISTED = "ai_assisted"


class EditingSession:
    def __init__(self, service, *, commit_threshold: int = DEFAULT_HISTORY_COMMIT_THRESHOLD):
        self.service = service
        self.commit_threshold = commit_threshold
        self.state = EditState.IDLE
        self.mode = EditMode.DIRECT
        self._base: Optional[Draft] = None
        self._history: Optional[EditHistory] = None
        self._content = ""
        self._transcript: Optional[ChatSession] = None
        self._ai_edit_pending = False
        # bumped whenever editing starts or ends; an AI result from an older epoch is dropped
        self._epoch = 0

    @property
    def is_editing(self) -> bool:
        return self.state is EditState.EDITING

    @property
    def content(self) -> str:
        return self._content

    @property
    def history(self) -> Optional[EditHistory]:
        return self._history

    @property
    def transcript(self) -> Optional[ChatSession]:
        return self._transcript

    @property
    def ai_edit_pending(self) -> bool:
        return self._ai_edit_pending

    @property
    def has_uncommitted_changes(self) -> bool:
        return self._history is not None and self._content != self._history.current

    def _require_editing(self) -> None:
        if not self.is_editing:
            raise SessionStateError("Not in edit mode")

    def _require_mode(self, mode: EditMode) -> None:
        self._require_editing()
        if self.mode is not mode:
            raise SessionStateError(f"Switch to {mode.value} mode first")

    def _reset(self) -> None:
        self.state = EditState.IDLE
        self.mode = EditMode.DIRECT
        self._base = None
        self._history = None
        self._content = ""
        self._transcript = None
        self._ai_edit_pending = False
        self._epoch += 1

    def begin(self, draft: Draft) -> None:
        if self.is_editing:
            raise SessionStateError("Already in edit mode")
        self._epoch += 1
        self._base = draft
        self._content = draft.content
        self._history = EditHistory(draft.content)
        greeting = prompt_text(self.service.settings, "greetings", "editing", DEFAULT_EDIT_GREETING)
        self._transcript = ChatSession.seeded(greeting.strip())
        self.mode = EditMode.DIRECT
        self.state = EditState.EDITING
        logger.debug(f"Editing started ({len(draft.content)} chars)")

    def set_mode(self, mode: EditMode) -> None:
        self._require_editing()
        self.mode = EditMode(mode)

    def direct_edit(self, content: str) -> bool:
        """
        Replace the working text. Returns True when the change was committed.

        Only changes whose length differs from the last committed snapshot by
        more than `commit_threshold` become an undo step.
        """
        self._require_mode(EditMode.DIRECT)
        self._content = content
        if abs(len(content) - len(self._history.current)) > self.commit_threshold:
            self._history.commit(content)
            return True
        return False

    def insert_markup(self, start: int, end: int, before: str, after: str = "") -> str:
        """Wrap content[start:end] with `before`/`after`; always an undo step."""
        self._require_mode(EditMode.DIRECT)
        if not 0 <= start <= end <= len(self._content):
            raise ValidationError(
                f"Selection {start}:{end} is outside the document (length {len(self._content)})",
                field="start",
            )
        content = self._content
        self._content = content[:start] + before + content[start:end] + after + content[end:]
        self._history.commit(self._content)
        return self._content

    def undo(self) -> str:
        self._require_editing()
        if self._history.can_undo:
            self._content = self._history.undo()
        return self._content

    def redo(self) -> str:
        self._require_editing()
        if self._history.can_redo:
            self._content = self._history.redo()
        return self._content

    async def ai_edit(self, instruction: str) -> ChatMessage:
        """
        Ask the generative service to apply `instruction` to the whole document.

        On success the returned full text becomes the content and is always
        committed. On failure the transcript gets an apology turn, content and
        history stay exactly as they were, and GenerationError is raised.
        """
        self._require_mode(EditMode.AI_ASSISTED)
        text = (instruction or "").strip()
        if not text:
            raise ValidationError("Edit instruction must not be empty", field="instruction")
        if self._ai_edit_pending:
            raise EditInProgressError("An AI edit is already in progress")

        epoch = self._epoch
        transcript = self._transcript
        settings = self.service.settings
        history = transcript.messages
        transcript.append_user(text)

        document = self._content
        context = prompt_text(settings, "system", "editing_context", DEFAULT_EDITING_CONTEXT)
        system = f"{context.strip()}\n\n<CURRENT_DOCUMENT>\n{document}\n</CURRENT_DOCUMENT>"

        self._ai_edit_pending = True
        try:
            reply = await self.service.converse(system=system, history=history, input_text=text)
            new_content = normalize_document_text(reply)
        except (GenerationError, ConfigurationError) as exc:
            logger.warning(f"AI edit failed: {exc}")
            if epoch == self._epoch:
                transcript.append_assistant(prompt_text(settings, "replies", "edit_failed", DEFAULT_EDIT_FAILED))
            raise
        finally:
            if epoch == self._epoch:
                self._ai_edit_pending = False

        if epoch != self._epoch:
            logger.info("Discarding AI edit result: editing session ended while it was in flight")
            raise SessionStateError("Editing ended before the AI edit completed")

        if document != self._history.current:
            # the buffered text the edit was based on becomes its own undo step
            self._history.commit(document)
        self._content = new_content
        self._history.commit(new_content)
        return transcript.append_assistant(prompt_text(settings, "replies", "edit_applied", DEFAULT_EDIT_APPLIED))

    def apply(self) -> Draft:
        """End editing and return the new authoritative draft."""
        self._require_editing()
        draft = self._base.replaced(self._content)
        self._reset()
        return draft

    def cancel(self) -> None:
        """End editing and throw away everything done in it."""
        self._require_editing()
        self._reset()

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "state": self.state.value,
            "mode": self.mode.value,
            "ai_edit_pending": self._ai_edit_pending,
        }
        if self.is_editing:
            data.update({
                "content": self._content,
                "history_index": self._history.index,
                "history_length": len(self._history),
                "can_undo": self._history.can_undo,
                "can_redo": self._history.can_redo,
                "has_uncommitted_changes": self.has_uncommitted_changes,
                "transcript": [m.model_dump() for m in self._transcript.messages],
            })
        return data
