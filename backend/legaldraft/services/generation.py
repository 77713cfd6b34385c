import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..config import (
    DEFAULT_CUSTOM_DRAFTING_PROMPT,
    DEFAULT_SYSTEM_PROMPT,
    prompt_text,
)
from ..exceptions import ConfigurationError, GenerationError, ValidationError
from ..reference import (
    CUSTOM_DOCUMENT_TYPE,
    JurisdictionContext,
    document_type_name,
    get_language,
    resolve_jurisdiction,
    validate_document_type,
)
from ..schemas import ChatMessage, GenerationRequest
from .chat import ChatSession
from .history import Draft
from .llm import normalize_document_text

logger = logging.getLogger(__name__)

DEFAULT_CHAT_FAILED_REPLY = (
    "Sorry, I couldn't process that just now. Please send your message again, or continue "
    "to the party details and I'll draft from what you've described so far."
)

LANGUAGE_INSTRUCTIONS = {
    "en": "Write the entire document in English.",
    "ar": "Write the entire document in formal legal Arabic.",
    "ur": "Write the entire document in Urdu.",
    "bilingual": (
        "Write the document in both English and Arabic: each section in English followed by its "
        "Arabic translation. State that the Arabic text prevails in case of discrepancy."
    ),
}


@dataclass
class GenerationResult:
    draft: Draft
    warnings: List[str] = field(default_factory=list)
    missing_required: Tuple[str, ...] = ()


def validate_generation_request(request: GenerationRequest) -> GenerationRequest:
    """
    Reject incomplete requests before any call to the generative service.

    Returns a normalized copy (canonical document type, lower-case codes).
    """
    document_type = validate_document_type(request.document_type)
    language = get_language(request.language).code
    context = resolve_jurisdiction(request.country, request.jurisdiction)

    if document_type == CUSTOM_DOCUMENT_TYPE:
        if not any(m.role == "user" and m.content.strip() for m in request.chat_history):
            raise ValidationError(
                "Describe the custom document in the chat before generating it",
                field="chat_history",
            )
    else:
        for key in ("party_a", "party_b"):
            party = getattr(request.parties, key)
            if not party.name.strip():
                raise ValidationError(f"Name is required for {key}", field=f"parties.{key}.name")
            if not party.id_number.strip():
                raise ValidationError(f"ID number is required for {key}", field=f"parties.{key}.id_number")

    return request.model_copy(
        update={
            "document_type": document_type,
            "language": language,
            "country": context.country_code,
            "jurisdiction": context.jurisdiction,
        }
    )


def _jurisdiction_payload(context: JurisdictionContext) -> Dict[str, Any]:
    return {
        "country_code": context.country_code,
        "country": context.country,
        "jurisdiction": context.jurisdiction,
        "governing_law": context.governing_law,
        "currency": context.currency,
        "language_required": context.language_required,
        "compliance_notes": list(context.compliance_notes),
    }


def build_generation_payload(request: GenerationRequest) -> Dict[str, Any]:
    """Merge parties, details and (for custom documents) the chat transcript."""
    context = resolve_jurisdiction(request.country, request.jurisdiction)
    details = dict(request.details)
    details.setdefault("currency", context.currency)

    payload: Dict[str, Any] = {
        "document_type": request.document_type,
        "document_name": document_type_name(request.document_type),
        "language": request.language,
        "jurisdiction": _jurisdiction_payload(context),
        "parties": request.parties.model_dump(),
        "details": details,
    }
    if request.document_type == CUSTOM_DOCUMENT_TYPE:
        payload["custom_title"] = request.custom_title
        payload["custom_description"] = request.custom_description
        # transcript order matters: the service only knows what is resent
        payload["chat_history"] = [m.model_dump() for m in request.chat_history]
    return payload


def build_system_prompt(settings, payload: Dict[str, Any]) -> str:
    base = prompt_text(settings, "system", "document_generation", DEFAULT_SYSTEM_PROMPT)
    ctx = payload["jurisdiction"]
    lines = [
        base.strip(),
        "",
        f"Jurisdiction: {ctx['country']}" + (f" ({ctx['jurisdiction']})" if ctx["jurisdiction"] else ""),
        f"Governing law: {ctx['governing_law']}",
        "Ensure compliance with: " + "; ".join(ctx["compliance_notes"]),
    ]
    if ctx["language_required"] == "ar":
        lines.append("Arabic text is legally binding in this jurisdiction.")
    return "\n".join(lines)


def build_user_prompt(payload: Dict[str, Any], skeleton: Optional[str] = None) -> str:
    parts = [
        f"Generate a {payload['document_name']} with these details:",
        "\nPARTIES:",
        json.dumps(payload["parties"], ensure_ascii=False, indent=2),
        "\nDOCUMENT DETAILS:",
        json.dumps(payload["details"], ensure_ascii=False, indent=2, default=str),
    ]
    if payload.get("chat_history"):
        parts.append("\nCONVERSATION WITH THE USER (in order):")
        for m in payload["chat_history"]:
            parts.append(f"{m['role'].upper()}: {m['content']}")
    if payload.get("custom_title"):
        parts.append(f"\nDocument title: {payload['custom_title']}")
    if payload.get("custom_description"):
        parts.append(f"Document description: {payload['custom_description']}")
    if skeleton:
        parts.extend([
            "\nSTARTING SKELETON (complete and refine it; keep its structure and filled-in values):",
            skeleton,
        ])
    parts.extend([
        "\nOutput requirements:",
        f"- {LANGUAGE_INSTRUCTIONS.get(payload['language'], LANGUAGE_INSTRUCTIONS['en'])}",
        "- Use numbered clauses and sub-clauses (1., 1.1., 1.1.1.).",
        "- Clearly identify the parties with all provided details.",
        "- Include governing law and dispute resolution clauses.",
        "- Leave a clear blank (e.g. [Amount]) where a detail is unknown; never invent IDs.",
        "- Return the complete document text only.",
    ])
    return "\n".join(parts)


async def generate_draft(
    request: GenerationRequest,
    *,
    service,
    store=None,
    today: Optional[date] = None,
) -> GenerationResult:
    """
    Turn a generation request into a new Draft.

    Raises ValidationError before any call when the request is incomplete and
    GenerationError when the service fails. Nothing is retried or persisted.
    """
    request = validate_generation_request(request)
    payload = build_generation_payload(request)

    skeleton = None
    warnings: List[str] = []
    missing_required: Tuple[str, ...] = ()
    template = store.find(request.document_type, request.language) if store is not None else None
    if template is not None:
        rendered = template.render_request(request, today=today)
        skeleton = rendered.text
        warnings = rendered.warnings
        missing_required = rendered.missing_required
        logger.debug(f"Using {request.document_type} template skeleton ({len(rendered.missing)} unbound fields)")

    logger.info(
        f"Generating {request.document_type} draft "
        f"(language={request.language}, country={request.country}, skeleton={skeleton is not None})"
    )
    text = await service.complete(
        system=build_system_prompt(service.settings, payload),
        user=build_user_prompt(payload, skeleton),
    )
    content = normalize_document_text(text)
    logger.info(f"Generated {request.document_type} draft ({len(content)} chars)")
    return GenerationResult(
        draft=Draft(content=content, language=request.language),
        warnings=warnings,
        missing_required=missing_required,
    )


async def custom_chat_turn(chat: ChatSession, message: str, *, language: str, service) -> ChatMessage:
    """
    One turn of the custom-document drafting conversation.

    The user turn is always recorded. On failure a fallback assistant turn is
    recorded too and the error is raised to the caller.
    """
    text = (message or "").strip()
    if not text:
        raise ValidationError("Message must not be empty", field="message")

    history = chat.messages
    chat.append_user(text)

    system = prompt_text(service.settings, "system", "custom_drafting", DEFAULT_CUSTOM_DRAFTING_PROMPT)
    system = f"{system.strip()}\n\nReply in {get_language(language).name}."
    try:
        reply = await service.converse(system=system, history=history, input_text=text)
    except (GenerationError, ConfigurationError):
        chat.append_assistant(prompt_text(service.settings, "replies", "chat_failed", DEFAULT_CHAT_FAILED_REPLY))
        raise

    reply = (reply or "").strip()
    if not reply:
        chat.append_assistant(prompt_text(service.settings, "replies", "chat_failed", DEFAULT_CHAT_FAILED_REPLY))
        raise GenerationError("Generative service returned an empty reply")
    return chat.append_assistant(reply)
