import logging
from typing import Sequence

from ..config import prompt_text
from ..exceptions import DraftingError
from ..reference import CUSTOM_DOCUMENT_TYPE, document_type_name
from ..schemas import GenerationRequest

logger = logging.getLogger(__name__)

DEFAULT_TITLE_INSTRUCTION = (
    "You are naming a legal document. Generate a concise, professional 2-6 word title based on "
    "the user's description of the document they need. Return ONLY the title text without quotes."
)


async def suggest_document_title(*, user_turns: Sequence[str], service) -> str:
    """
    Suggest a title for a custom document from the drafting conversation.

    Falls back to a heuristic from the first user turn when the service is
    unavailable; a title is a convenience and never blocks drafting.
    """
    description = "\n".join(t.strip() for t in user_turns if t.strip())
    if not description:
        return ""

    instruction = prompt_text(service.settings, "title", "instruction", DEFAULT_TITLE_INSTRUCTION)
    try:
        text = await service.complete(
            system=instruction,
            user=f"User description:\n{description[:4000]}",
            max_tokens=32,
        )
    except DraftingError as exc:
        logger.info(f"Title suggestion unavailable ({exc}); using fallback")
        return _fallback_title(user_turns[0])

    title = text.strip().strip('"').strip()
    return title or _fallback_title(user_turns[0])


def document_title(request: GenerationRequest) -> str:
    """Title used for the stored document: "<type> - <party A> & <party B>"."""
    if request.document_type == CUSTOM_DOCUMENT_TYPE and request.custom_title:
        base = request.custom_title
    else:
        base = document_type_name(request.document_type, request.language)
    names = [p.name.strip() for p in (request.parties.party_a, request.parties.party_b) if p.name.strip()]
    if not names:
        return base
    return f"{base} - {' & '.join(names)}"


def _fallback_title(user_input: str) -> str:
    s = user_input.strip()
    if len(s) > 60:
        s = s[:57] + "..."
    # Capitalize first letter, naive fallback
    return s[:1].upper() + s[1:]
