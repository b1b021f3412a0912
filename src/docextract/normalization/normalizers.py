# src/docextract/normalization/normalizers.py
from __future__ import annotations

import re
from typing import Callable, Optional, Tuple

from docextract.utils.numeric_parser import parse_leading_float


# =====================================================================
# Static keyword tables
# =====================================================================

MONTHS = {
    "january": "01", "february": "02", "march": "03", "april": "04",
    "may": "05", "june": "06", "july": "07", "august": "08",
    "september": "09", "october": "10", "november": "11", "december": "12",
    "jan": "01", "feb": "02", "mar": "03", "apr": "04",
    "jun": "06", "jul": "07", "aug": "08", "sep": "09",
    "oct": "10", "nov": "11", "dec": "12",
}

STREET_WORDS: Tuple[str, ...] = (
    "street", "st", "avenue", "ave", "road", "rd", "boulevard", "blvd",
    "drive", "dr", "lane", "ln", "court", "ct", "plaza", "plz",
    "square", "sq",
)

_EMAIL_RE = re.compile(r"^[^@]+@[^@]+\.[^@]+$")
_STREET_RE = re.compile(r"\b(" + "|".join(STREET_WORDS) + r")\b", re.IGNORECASE)
_STATE_CODE_RE = re.compile(r"\b([a-z]{2})\b")
_WORD_START_RE = re.compile(r"\b\w")

_DATE_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DATE_DMY = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_DATE_MONTH_NAME = re.compile(r"^([A-Za-z]+)\s+(\d{1,2})(?:,|\s+)?\s*(\d{4})$")


# =====================================================================
# Normalizers
#
# Every normalizer is total: it never raises and returns its input
# unchanged when the value does not look like its type.
# =====================================================================

def normalize_email(value: str) -> str:
    """Lowercase and drop whitespace; keep the original if it is not an email."""
    email = re.sub(r"\s+", "", value.lower())
    if not _EMAIL_RE.match(email):
        return value
    return email


def normalize_phone(value: str) -> str:
    """
    US-style phone formatting:
      5551234567   -> (555) 123-4567
      15551234567  -> 1-555-123-4567
    Anything else is returned untouched.
    """
    digits = re.sub(r"\D", "", value)

    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == "1":
        return f"1-{digits[1:4]}-{digits[4:7]}-{digits[7:]}"

    return value


def _format_mdy(m: re.Match) -> Optional[str]:
    return f"{m.group(3)}-{m.group(1).zfill(2)}-{m.group(2).zfill(2)}"


def _format_dmy(m: re.Match) -> Optional[str]:
    return f"{m.group(3)}-{m.group(2).zfill(2)}-{m.group(1).zfill(2)}"


def _format_month_name(m: re.Match) -> Optional[str]:
    month = MONTHS.get(m.group(1).lower())
    if month is None:
        return None
    return f"{m.group(3)}-{month}-{m.group(2).zfill(2)}"


_DATE_FORMATS: Tuple[Tuple[re.Pattern, Callable[[re.Match], Optional[str]]], ...] = (
    (_DATE_MDY, _format_mdy),
    (_DATE_DMY, _format_dmy),
    (_DATE_MONTH_NAME, _format_month_name),
)


def normalize_date(value: str) -> str:
    """
    Convert MM/DD/YYYY, DD-MM-YYYY and "Month DD, YYYY" to YYYY-MM-DD.

    The slash form is always read month-first and the dash form day-first;
    locale conflicts are not resolved here.
    """
    date_value = value.strip()

    for pattern, formatter in _DATE_FORMATS:
        m = pattern.match(date_value)
        if m:
            formatted = formatter(m)
            return formatted if formatted is not None else value

    return value


def normalize_amount(value: str) -> str:
    """
    Keep digits, '.' and '-', collapse extra decimal points into the first
    one and format with two decimals:
      "$1,234.5" -> "1234.50"
      "12.34.56" -> "12.3456" -> "12.35"
    If the stripped string does not parse, the stripped string is returned;
    if nothing is left after stripping, the input is returned unchanged.
    """
    amount = re.sub(r"[^0-9.\-]", "", value)
    if not amount:
        return value

    if amount.count(".") > 1:
        head, *rest = amount.split(".")
        amount = head + "." + "".join(rest)

    parsed = parse_leading_float(amount)
    if parsed is None:
        return amount

    return f"{parsed:.2f}"


def normalize_address(value: str) -> str:
    """Collapse spaces, title-case street words, uppercase 2-letter state codes."""
    address = re.sub(r"\s{2,}", " ", value.strip())
    if not address:
        return value
    address = _STREET_RE.sub(lambda m: m.group(0).capitalize(), address)
    address = _STATE_CODE_RE.sub(lambda m: m.group(0).upper(), address)
    return address


def _upper_initial(m: re.Match) -> str:
    # letters such as "\u00df" upper-case to two characters; leave them as is
    ch = m.group(0)
    upper = ch.upper()
    return upper if len(upper) == 1 else ch


def normalize_name(value: str) -> str:
    """Proper-case every word."""
    name = value.strip().lower()
    if not name:
        return value
    return _WORD_START_RE.sub(_upper_initial, name)


# =====================================================================
# Dispatch by field name
# =====================================================================

AMOUNT_NAME_RE = re.compile(r"amount|price|total|cost|fee|tax|sum", re.IGNORECASE)
ADDRESS_NAME_RE = re.compile(r"address|street|city|state|zip|postal", re.IGNORECASE)
PERSON_NAME_RE = re.compile(r"name|customer|client|vendor|supplier", re.IGNORECASE)

# Priority order matters: first match wins.
_DISPATCH: Tuple[Tuple[Callable[[str], bool], Callable[[str], str]], ...] = (
    (lambda n: "email" in n, normalize_email),
    (lambda n: "phone" in n, normalize_phone),
    (lambda n: "date" in n, normalize_date),
    (lambda n: bool(AMOUNT_NAME_RE.search(n)), normalize_amount),
    (lambda n: bool(ADDRESS_NAME_RE.search(n)), normalize_address),
    (lambda n: bool(PERSON_NAME_RE.search(n)), normalize_name),
)


def normalizer_for(field_name: str) -> Optional[Callable[[str], str]]:
    """Return the normalizer selected by the field name, or None."""
    lowered = field_name.lower()
    for matches, normalizer in _DISPATCH:
        if matches(lowered):
            return normalizer
    return None


def normalize_by_field_name(field_name: str, value: str) -> str:
    normalizer = normalizer_for(field_name)
    if normalizer is None:
        return value
    return normalizer(value)
