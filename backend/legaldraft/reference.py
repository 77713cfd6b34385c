"""Static reference tables for GCC drafting.

Countries, sub-jurisdictions, document types and languages. All lookups are
deterministic and the tables are never mutated at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .exceptions import ValidationError


CUSTOM_DOCUMENT_TYPE = "custom"


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    name_ar: str
    currency: str
    currency_symbol: str
    # "ar": Arabic is mandatory for validity, "both": Arabic and English accepted
    language_required: str
    jurisdictions: Tuple[str, ...]
    compliance_notes: Tuple[str, ...]


@dataclass(frozen=True)
class JurisdictionContext:
    """Resolved country/sub-jurisdiction data sent with every generation request."""

    country_code: str
    country: str
    country_ar: str
    jurisdiction: Optional[str]
    currency: str
    governing_law: str
    governing_law_ar: str
    language_required: str
    compliance_notes: Tuple[str, ...]


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    direction: str  # "ltr" or "rtl"

    @property
    def is_rtl(self) -> bool:
        return self.direction == "rtl"


COUNTRIES: Mapping[str, Country] = MappingProxyType({
    "ae": Country(
        code="ae",
        name="United Arab Emirates",
        name_ar="الإمارات العربية المتحدة",
        currency="AED",
        currency_symbol="د.إ",
        language_required="both",
        jurisdictions=("DIFC", "ADGM", "Mainland", "Free Zone"),
        compliance_notes=(
            "Federal Law No. 1 of 2006 (E-commerce & Transactions)",
            "Contracts must be in Arabic for court validity",
            "Real estate requires notarization",
            "Employment contracts must follow MOHRE templates",
        ),
    ),
    "sa": Country(
        code="sa",
        name="Saudi Arabia",
        name_ar="المملكة العربية السعودية",
        currency="SAR",
        currency_symbol="ر.س",
        language_required="ar",
        jurisdictions=("Riyadh", "Jeddah", "Eastern Province"),
        compliance_notes=(
            "Arabic is mandatory for legal validity",
            "Sharia compliance required",
            "E-signature valid under the Electronic Transactions Law",
            "Real estate requires Notary Public authentication",
        ),
    ),
    "qa": Country(
        code="qa",
        name="Qatar",
        name_ar="قطر",
        currency="QAR",
        currency_symbol="ر.ق",
        language_required="both",
        jurisdictions=("QFC", "Mainland"),
        compliance_notes=(
            "Arabic required for government dealings",
            "E-signature valid under Law No. 16 of 2010",
            "QFC operates under an English common law framework",
            "Labor Law No. 14 of 2004 governs employment",
            "Commercial contracts follow Civil Code Law No. 22 of 2004",
        ),
    ),
    "kw": Country(
        code="kw",
        name="Kuwait",
        name_ar="الكويت",
        currency="KWD",
        currency_symbol="د.ك",
        language_required="ar",
        jurisdictions=("Mainland",),
        compliance_notes=(
            "Arabic is the official legal language",
            "E-signature valid under Law No. 20 of 2014",
            "Private Sector Labor Law No. 6 of 2010 governs employment",
            "Real estate transactions require Ministry of Justice authentication",
        ),
    ),
    "bh": Country(
        code="bh",
        name="Bahrain",
        name_ar="البحرين",
        currency="BHD",
        currency_symbol="د.ب",
        language_required="both",
        jurisdictions=("Mainland", "Financial Harbour"),
        compliance_notes=(
            "Arabic and English both accepted",
            "E-Signature Law of 2002",
            "Labor Law for the Private Sector (Law No. 36 of 2012)",
            "Real estate registration with the Survey and Land Registration Bureau",
        ),
    ),
    "om": Country(
        code="om",
        name="Oman",
        name_ar="عُمان",
        currency="OMR",
        currency_symbol="ر.ع",
        language_required="ar",
        jurisdictions=("Muscat", "Free Zones"),
        compliance_notes=(
            "Arabic mandatory for legal documents",
            "E-Transactions Law Royal Decree 69/2008",
            "Labor Law (Royal Decree 35/2003, amended by 113/2011)",
            "Real estate transactions require notarization",
        ),
    ),
})


LANGUAGES: Mapping[str, Language] = MappingProxyType({
    "en": Language("en", "English", "ltr"),
    "ar": Language("ar", "Arabic", "rtl"),
    "ur": Language("ur", "Urdu", "rtl"),
    # English and Arabic side by side; laid out left-to-right
    "bilingual": Language("bilingual", "English / Arabic", "ltr"),
})


# document type -> (English name, Arabic name)
DOCUMENT_TYPES: Mapping[str, Tuple[str, str]] = MappingProxyType({
    "rental_agreement": ("Residential Lease Agreement", "عقد إيجار سكني"),
    "nda": ("Non-Disclosure Agreement", "اتفاقية عدم إفصاح"),
    "service_agreement": ("Service Agreement", "اتفاقية تقديم خدمات"),
    "employment_contract": ("Employment Contract", "عقد عمل"),
    "sales_contract": ("Sales Contract", "عقد بيع"),
    "power_of_attorney": ("Power of Attorney", "توكيل"),
    "demand_letter": ("Demand Letter", "خطاب مطالبة"),
    CUSTOM_DOCUMENT_TYPE: ("Custom Document", "مستند مخصص"),
})


def get_country(code: str) -> Country:
    country = COUNTRIES.get((code or "").strip().lower())
    if country is None:
        raise ValidationError(
            f"Unsupported country '{code}'. Valid countries: {sorted(COUNTRIES)}",
            field="country",
        )
    return country


def get_language(code: str) -> Language:
    language = LANGUAGES.get((code or "").strip().lower())
    if language is None:
        raise ValidationError(
            f"Unsupported language '{code}'. Valid languages: {sorted(LANGUAGES)}",
            field="language",
        )
    return language


def validate_document_type(document_type: str) -> str:
    """Return the canonical document type key, raising ValidationError if unknown."""
    key = (document_type or "").strip().lower().replace(" ", "_").replace("-", "_")
    if key not in DOCUMENT_TYPES:
        raise ValidationError(
            f"Unsupported document type '{document_type}'. "
            f"Valid types: {list(DOCUMENT_TYPES)}",
            field="document_type",
        )
    return key


def document_type_name(document_type: str, language: str = "en") -> str:
    names = DOCUMENT_TYPES.get(document_type)
    if names is None:
        return document_type.replace("_", " ").title()
    return names[1] if get_language(language).is_rtl else names[0]


def resolve_jurisdiction(country_code: str, jurisdiction: Optional[str] = None) -> JurisdictionContext:
    """Resolve a country code and optional sub-jurisdiction into a JurisdictionContext."""
    country = get_country(country_code)

    sub = None
    if jurisdiction:
        by_lower = {j.lower(): j for j in country.jurisdictions}
        sub = by_lower.get(jurisdiction.strip().lower())
        if sub is None:
            raise ValidationError(
                f"Jurisdiction '{jurisdiction}' is not part of {country.name}. "
                f"Valid jurisdictions: {list(country.jurisdictions)}",
                field="jurisdiction",
            )

    governing_law = f"Laws of {country.name}"
    governing_law_ar = f"قوانين {country.name_ar}"
    if sub:
        governing_law += f" - {sub}"
        governing_law_ar += f" - {sub}"

    return JurisdictionContext(
        country_code=country.code,
        country=country.name,
        country_ar=country.name_ar,
        jurisdiction=sub,
        currency=country.currency,
        governing_law=governing_law,
        governing_law_ar=governing_law_ar,
        language_required=country.language_required,
        compliance_notes=country.compliance_notes,
    )
