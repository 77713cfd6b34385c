"""
Field Bindings

A FieldBindings set is the flat input of the renderer: placeholder values
(already formatted strings) plus conditional flags. build_bindings derives one
from a GenerationRequest:

    parties.party_a.name      -> party_a_name
    parties.party_b.id_number -> party_b_id
    details.rent_amount       -> rent_amount (and flag has_rent_amount)
    details.pets_allowed=True -> flag pets_allowed
"""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..reference import resolve_jurisdiction
from ..schemas import GenerationRequest, Party
from .transforms import apply_transform, format_date

PARTY_FIELDS = {
    "name": "name",
    "id": "id_number",
    "nationality": "nationality",
    "address": "address",
    "phone": "phone",
    "email": "email",
}


@dataclass(frozen=True)
class FieldBindings:
    values: Mapping[str, str] = field(default_factory=dict)
    flags: Mapping[str, bool] = field(default_factory=dict)

    def value(self, name: str) -> Optional[str]:
        raw = self.values.get(name)
        return None if raw is None else str(raw)

    def is_set(self, flag: str) -> bool:
        """A flag is set when bound to True or to a non-empty string."""
        if flag in self.flags:
            raw: Any = self.flags[flag]
        else:
            raw = self.values.get(flag)
        if isinstance(raw, str):
            return raw != ""
        return bool(raw)


def _party_values(prefix: str, party: Party) -> Dict[str, str]:
    return {
        f"{prefix}_{key}": (getattr(party, attr) or "").strip()
        for key, attr in PARTY_FIELDS.items()
    }


def build_bindings(
    request: GenerationRequest,
    *,
    language: Optional[str] = None,
    transforms: Optional[Mapping[str, str]] = None,
    today: Optional[date] = None,
) -> FieldBindings:
    """
    Build the binding set for one language variant of a request.

    Args:
        request: The generation request holding parties and details
        language: Language the values are formatted for (defaults to request.language)
        transforms: Template-declared field -> transform name map
        today: Date bound to {{date}}; defaults to today
    """
    language = language or request.language
    transforms = transforms or {}
    context = resolve_jurisdiction(request.country, request.jurisdiction)
    is_arabic = language in ("ar", "ur")

    values: Dict[str, str] = {}
    flags: Dict[str, bool] = {}

    values.update(_party_values("party_a", request.parties.party_a))
    values.update(_party_values("party_b", request.parties.party_b))

    for key, raw in request.details.items():
        if isinstance(raw, bool):
            flags[key] = raw
            continue
        values[key] = apply_transform(
            raw,
            transforms.get(key),
            language=language,
            currency=context.currency,
        )

    values.update({
        "date": format_date(today or date.today(), language),
        "country": context.country_ar if is_arabic else context.country,
        "jurisdiction": context.jurisdiction or "",
        "governing_law": context.governing_law_ar if is_arabic else context.governing_law,
        "currency": context.currency,
    })
    if request.custom_title:
        values["custom_title"] = request.custom_title

    for key, value in values.items():
        flags.setdefault(f"has_{key}", value != "")

    return FieldBindings(values=MappingProxyType(values), flags=MappingProxyType(flags))
