"""
Field Transforms

Functions that turn raw request values into display strings before they are
bound into a template. Each transform is registered by name and referenced
from template YAML:

    transforms:
      rent_amount: currency
      start_date: date

Formatting happens here, upstream of the renderer, so rendering itself stays
locale-free.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# (value, language, currency) -> display string
TransformFunc = Callable[[Any, str, str], str]

MONTHS_EN = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
MONTHS_AR = (
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
)

DATE_INPUT_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: date, language: str) -> str:
    """
    Format a date as "15 January 2026" (English) or "15 يناير 2026" (Arabic).
    """
    months = MONTHS_AR if language in ("ar", "ur") else MONTHS_EN
    return f"{value.day:02d} {months[value.month - 1]} {value.year}"


def transform_date(value: Any, language: str, currency: str) -> str:
    if value is None or str(value).strip() == "":
        return ""
    parsed = _parse_date(value)
    if parsed is None:
        logger.warning(f"Could not parse date: {value}")
        return str(value)
    return format_date(parsed, language)


def transform_currency(value: Any, language: str, currency: str) -> str:
    """
    Format an amount with the country currency code.

    Examples:
        5000 -> "5,000.00 AED"
        "12,500" -> "12,500.00 AED"
    """
    if value is None:
        return ""
    raw = str(value).replace(",", "").strip()
    if currency and raw.upper().endswith(currency):
        raw = raw[: -len(currency)].strip()
    if not raw:
        return ""
    try:
        amount = float(raw)
    except ValueError:
        logger.warning(f"Could not format as currency: {value}")
        return str(value)
    formatted = f"{amount:,.2f}"
    return f"{formatted} {currency}".strip()


def transform_uppercase(value: Any, language: str, currency: str) -> str:
    return "" if value is None else str(value).upper()


def transform_trim(value: Any, language: str, currency: str) -> str:
    return "" if value is None else str(value).strip()


def transform_none(value: Any, language: str, currency: str) -> str:
    """No transformation - just convert to string."""
    return "" if value is None else str(value)


# Registry of available transforms
TRANSFORMS: Dict[str, TransformFunc] = {
    "date": transform_date,
    "currency": transform_currency,
    "uppercase": transform_uppercase,
    "trim": transform_trim,
    "none": transform_none,
}


def apply_transform(value: Any, transform_name: Optional[str], *, language: str = "en", currency: str = "") -> str:
    """
    Apply a named transform to a value.

    Unknown names fall back to str(value) with a warning; template loading
    rejects them up front, so this only happens for ad-hoc calls.
    """
    if value is None:
        return ""
    if not transform_name:
        return str(value)
    transform_func = TRANSFORMS.get(transform_name)
    if transform_func is None:
        logger.warning(f"Unknown transform: {transform_name}")
        return str(value)
    return transform_func(value, language, currency)
