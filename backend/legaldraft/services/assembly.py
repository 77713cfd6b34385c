"""
Assembly/Export

Builds the render-ready description of a finished draft: reference bar,
jurisdiction notices, party cards, body, signature and witness blocks,
footer and watermark. A PDF renderer consumes it; no layout happens here.

Right-to-left languages get Arabic labels, right alignment and mirrored
visual order of the party, signature and witness blocks.
"""

import string
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..reference import document_type_name, get_language, resolve_jurisdiction
from ..schemas import GenerationRequest, Party
from ..templating.transforms import format_date

BASE36_DIGITS = string.digits + string.ascii_uppercase

LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "watermark": "DRAFT",
        "reference": "Reference No.",
        "date": "Date",
        "language": "Language",
        "status": "Status",
        "jurisdiction": "Jurisdiction",
        "governing_law": "Governing Law",
        "note": "Note",
        "arabic_binding": "This document is in Arabic as required by law. Arabic is the legally binding language.",
        "arabic_prevails": "In case of any discrepancy between versions, the Arabic version shall prevail.",
        "party_a": "First Party (Party A)",
        "party_b": "Second Party (Party B)",
        "name": "Name",
        "id_number": "ID Number",
        "nationality": "Nationality",
        "address": "Address",
        "phone": "Phone",
        "email": "Email",
        "signature_a": "First Party Signature",
        "signature_b": "Second Party Signature",
        "witnesses": "Witnesses",
        "witness_1": "Witness 1 Name",
        "witness_2": "Witness 2 Name",
        "date_line": "Date: ___________",
        "generated_by": "This document was generated using an AI drafting platform",
        "generated_on": "Generated on",
        "disclaimer": (
            "This document is an AI-generated draft and must be reviewed by a qualified attorney "
            "before signing or use."
        ),
        "consult": "For legal questions, please consult a licensed attorney in {country}.",
    },
    "ar": {
        "watermark": "مسودة",
        "reference": "رقم المرجع",
        "date": "التاريخ",
        "language": "اللغة",
        "status": "الحالة",
        "jurisdiction": "الاختصاص القضائي",
        "governing_law": "القانون الحاكم",
        "note": "ملاحظة",
        "arabic_binding": "هذا المستند باللغة العربية كما هو مطلوب بموجب القانون. اللغة العربية هي اللغة الملزمة قانونًا.",
        "arabic_prevails": "في حالة وجود أي تناقض بين النسخ، تسود النسخة العربية.",
        "party_a": "الطرف الأول",
        "party_b": "الطرف الثاني",
        "name": "الاسم",
        "id_number": "رقم الهوية",
        "nationality": "الجنسية",
        "address": "العنوان",
        "phone": "الهاتف",
        "email": "البريد الإلكتروني",
        "signature_a": "توقيع الطرف الأول",
        "signature_b": "توقيع الطرف الثاني",
        "witnesses": "الشهود",
        "witness_1": "اسم الشاهد الأول",
        "witness_2": "اسم الشاهد الثاني",
        "date_line": "التاريخ: ___________",
        "generated_by": "تم إنشاء هذا المستند بواسطة منصة صياغة مدعومة بالذكاء الاصطناعي",
        "generated_on": "تاريخ الإنشاء",
        "disclaimer": "هذا المستند عبارة عن مسودة تم إنشاؤها بواسطة الذكاء الاصطناعي ويجب مراجعتها من قبل محامٍ مؤهل قبل التوقيع أو الاستخدام.",
        "consult": "للأسئلة القانونية، يُرجى استشارة محامٍ مرخص في {country}.",
    },
}

# language names shown in Arabic-labelled exports
LANGUAGE_NAMES_AR: Dict[str, str] = {
    "en": "الإنجليزية",
    "ar": "العربية",
    "ur": "الأردية",
    "bilingual": "الإنجليزية / العربية",
}

PARTY_FIELDS = ("id_number", "nationality", "address", "phone", "email")


class LabeledValue(BaseModel):
    label: str
    value: str


class PartyBlock(BaseModel):
    heading: str
    name: str
    fields: List[LabeledValue] = Field(default_factory=list)


class SignatureBlock(BaseModel):
    label: str
    name: str = ""
    details: List[LabeledValue] = Field(default_factory=list)
    date_line: str


class AssembledDocument(BaseModel):
    reference_id: str
    title: str
    language: str
    direction: str
    alignment: str
    locale: str
    date_label: str
    page_size: str = "A4"
    watermark: str
    header: List[LabeledValue]
    jurisdiction_notices: List[LabeledValue]
    parties: List[PartyBlock]
    content: str
    signatures: List[SignatureBlock]
    witnesses_title: str
    witnesses: List[SignatureBlock]
    footer: List[str]


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def make_reference_id(country: str, document_type: str, now: Optional[datetime] = None) -> str:
    """e.g. "AE-RENTAL_AGREEMENT-LZ2K8Q0A" (base36 of the epoch milliseconds)."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"{country.upper()}-{document_type.upper()}-{to_base36(millis)}"


def _labels_for(language: str) -> Dict[str, str]:
    return LABELS["ar"] if get_language(language).is_rtl else LABELS["en"]


def _party_block(heading: str, party: Party, labels: Dict[str, str]) -> PartyBlock:
    fields = [
        LabeledValue(label=labels[key], value=getattr(party, key))
        for key in PARTY_FIELDS
        if getattr(party, key).strip()
    ]
    return PartyBlock(heading=heading, name=party.name, fields=fields)


def _signature_block(label: str, party: Party, labels: Dict[str, str]) -> SignatureBlock:
    details = [
        LabeledValue(label=labels[key], value=getattr(party, key))
        for key in ("id_number", "nationality")
        if getattr(party, key).strip()
    ]
    return SignatureBlock(label=label, name=party.name, details=details, date_line=labels["date_line"])


def _witness_block(label: str, labels: Dict[str, str]) -> SignatureBlock:
    blank = "___________________"
    return SignatureBlock(
        label=f"{label}: {blank}",
        details=[LabeledValue(label=labels["id_number"], value=blank)],
        date_line=labels["date_line"],
    )


def assemble_document(
    request: GenerationRequest,
    content: str,
    *,
    title: str,
    language: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AssembledDocument:
    """
    Describe a finished draft for export.

    `language` defaults to the request language and decides direction and
    label localization.
    """
    now = now or datetime.now(timezone.utc)
    lang = get_language(language or request.language)
    labels = _labels_for(lang.code)
    context = resolve_jurisdiction(request.country, request.jurisdiction)
    rtl = lang.is_rtl

    country_name = context.country_ar if rtl else context.country
    date_label = format_date(now.date(), lang.code)
    reference_id = make_reference_id(context.country_code, request.document_type, now)

    language_name = LANGUAGE_NAMES_AR.get(lang.code, lang.name) if rtl else lang.name
    header = [
        LabeledValue(label=labels["reference"], value=reference_id),
        LabeledValue(label=labels["date"], value=date_label),
        LabeledValue(label=labels["language"], value=language_name),
        LabeledValue(label=labels["status"], value=labels["watermark"]),
    ]

    jurisdiction = f"{country_name} - {context.jurisdiction}" if context.jurisdiction else country_name
    notices = [
        LabeledValue(label=labels["jurisdiction"], value=jurisdiction),
        LabeledValue(label=labels["governing_law"], value=context.governing_law_ar if rtl else context.governing_law),
    ]
    if context.language_required == "ar":
        notices.append(LabeledValue(label=labels["note"], value=labels["arabic_binding"]))
    elif lang.code == "bilingual":
        notices.append(LabeledValue(label=labels["note"], value=labels["arabic_prevails"]))

    parties = [
        _party_block(labels["party_a"], request.parties.party_a, labels),
        _party_block(labels["party_b"], request.parties.party_b, labels),
    ]
    signatures = [
        _signature_block(labels["signature_a"], request.parties.party_a, labels),
        _signature_block(labels["signature_b"], request.parties.party_b, labels),
    ]
    witnesses = [_witness_block(labels["witness_1"], labels), _witness_block(labels["witness_2"], labels)]
    if rtl:
        # side-by-side blocks read right to left
        parties.reverse()
        signatures.reverse()
        witnesses.reverse()

    footer = [
        labels["generated_by"],
        f"{labels['generated_on']}: {date_label}",
        f"{labels['reference']}: {reference_id}",
        labels["disclaimer"],
        labels["consult"].format(country=country_name),
    ]

    return AssembledDocument(
        reference_id=reference_id,
        title=title or document_type_name(request.document_type, lang.code),
        language=lang.code,
        direction=lang.direction,
        alignment="right" if rtl else "left",
        locale=f"{lang.code}-{context.country_code.upper()}" if rtl else "en-GB",
        date_label=date_label,
        watermark=labels["watermark"],
        header=header,
        jurisdiction_notices=notices,
        parties=parties,
        content=content,
        signatures=signatures,
        witnesses_title=labels["witnesses"],
        witnesses=witnesses,
        footer=footer,
    )
