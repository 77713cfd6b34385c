from fastapi import APIRouter, Request

from ..reference import COUNTRIES, DOCUMENT_TYPES, LANGUAGES
from ..schemas import RenderRequest
from ..services.editing import QUICK_ACTIONS
from ..templating.bindings import FieldBindings

router = APIRouter()


@router.get("/templates")
async def list_templates(request: Request):
    store = request.app.state.templates
    return {
        "templates": [
            {
                "document_type": t.document_type,
                "names": dict(t.names),
                "languages": t.languages,
                "required_fields": list(t.required_fields),
            }
            for t in store.all()
        ]
    }


@router.get("/templates/{document_type}")
async def get_template(document_type: str, request: Request):
    template = request.app.state.templates.get_or_raise(document_type)
    return {
        "document_type": template.document_type,
        "names": dict(template.names),
        "languages": template.languages,
        "required_fields": list(template.required_fields),
        "transforms": dict(template.transforms),
        "bodies": dict(template.bodies),
    }


@router.post("/templates/{document_type}/render")
async def render_template(document_type: str, payload: RenderRequest, request: Request):
    """Render one language variant against literal values and flags."""
    template = request.app.state.templates.get_or_raise(document_type)
    result = template.render(payload.language, FieldBindings(values=payload.values, flags=payload.flags))
    return {
        "text": result.text,
        "warnings": result.warnings,
        "missing": list(result.missing),
        "missing_required": list(result.missing_required),
    }


@router.get("/reference")
async def reference_data():
    return {
        "countries": [
            {
                "code": c.code,
                "name": c.name,
                "name_ar": c.name_ar,
                "currency": c.currency,
                "language_required": c.language_required,
                "jurisdictions": list(c.jurisdictions),
            }
            for c in COUNTRIES.values()
        ],
        "languages": [{"code": l.code, "name": l.name, "direction": l.direction} for l in LANGUAGES.values()],
        "document_types": [{"key": k, "name": en, "name_ar": ar} for k, (en, ar) in DOCUMENT_TYPES.items()],
        "quick_actions": [{"key": k, "instruction": v} for k, v in QUICK_ACTIONS.items()],
    }
