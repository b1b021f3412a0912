# src/docextract/normalization/scoring.py
from __future__ import annotations

import re
from typing import Iterable, Sequence, Tuple

from docextract.core.types import ExtractedField


# Field-name keywords driving document-level weights.
CRITICAL_KEYWORDS: Tuple[str, ...] = (
    "total", "amount", "invoice", "date", "customer", "vendor", "id",
)
SECONDARY_KEYWORDS: Tuple[str, ...] = (
    "address", "email", "phone", "tax", "description",
)

CRITICAL_WEIGHT = 2.0
SECONDARY_WEIGHT = 1.5
DEFAULT_WEIGHT = 1.0

# Blend used when rescoring a field after normalization.
EXTRACTION_SHARE = 0.7
CONTENT_SHARE = 0.3

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DIGITS7_RE = re.compile(r"\d{7,}")
_NUMERIC_DATE_RE = re.compile(r"\d{1,4}[/\-.]\d{1,2}[/\-.]\d{1,4}")
_NAMED_DATE_RE = re.compile(
    r"\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{4}",
    re.IGNORECASE,
)
_MONEY_RE = re.compile(r"^[$£€]?\s*\d+(?:,\d{3})*(?:\.\d{2})?$")
_US_ZIP_RE = re.compile(r"^\d{5}(?:-\d{4})?$")
_CA_POSTAL_RE = re.compile(r"^[A-Z]\d[A-Z]\s*\d[A-Z]\d$")


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def variety_score(value: str) -> float:
    """
    Unique-character ratio (capped at 20 chars) scaled by a length factor
    that saturates at 15 chars.
    """
    if not value:
        return 0.0

    unique_chars = len(set(value))
    length_factor = min(1.0, len(value) / 15)
    variety = unique_chars / min(len(value), 20)

    return variety * length_factor


def content_quality(name: str, value: str) -> float:
    """
    Pattern-based quality score for a field value, in [0, 1].

    Typed checks (email, phone, date, amount, postal code) are chosen from the
    field name; everything else falls back to length and character variety.
    """
    lowered = name.lower()

    if not value or not value.strip():
        return 0.1

    if "email" in lowered:
        return 0.95 if _EMAIL_RE.match(value) else 0.3

    if "phone" in lowered:
        return 0.9 if _DIGITS7_RE.search(re.sub(r"\D", "", value)) else 0.4

    if "date" in lowered:
        if _NUMERIC_DATE_RE.search(value) or _NAMED_DATE_RE.search(value):
            return 0.9
        return 0.4

    if "amount" in lowered or "total" in lowered or "price" in lowered:
        return 0.95 if _MONEY_RE.match(value) else 0.3

    if "zip" in lowered or "postal" in lowered:
        if _US_ZIP_RE.match(value) or _CA_POSTAL_RE.match(value):
            return 0.9
        return 0.5

    if len(value) > 100 and ("description" in lowered or "notes" in lowered):
        return 0.8

    if len(value) < 3 and "id" not in lowered and "code" not in lowered:
        return 0.4

    length_score = min(1.0, len(value) / 20)
    return length_score * 0.6 + variety_score(value) * 0.4


def score_field(field: ExtractedField) -> float:
    """
    Rescore one field:
        score = 0.7 * extraction confidence + 0.3 * content quality
    clamped to [0, 1].
    """
    base = field.confidence or 0.0
    quality = content_quality(field.name, field.value)
    return _clamp(EXTRACTION_SHARE * base + CONTENT_SHARE * quality)


def field_weight(name: str) -> float:
    lowered = name.lower()
    if any(k in lowered for k in CRITICAL_KEYWORDS):
        return CRITICAL_WEIGHT
    if any(k in lowered for k in SECONDARY_KEYWORDS):
        return SECONDARY_WEIGHT
    return DEFAULT_WEIGHT


def overall_confidence(fields: Sequence[ExtractedField]) -> float:
    """Importance-weighted mean of field confidences; 0.0 for no fields."""
    if not fields:
        return 0.0

    weighted_sum = 0.0
    total_weight = 0.0

    for f in fields:
        weight = field_weight(f.name)
        weighted_sum += f.confidence * weight
        total_weight += weight

    return _clamp(weighted_sum / total_weight)


def confidence_range(fields: Iterable[ExtractedField]) -> Tuple[float, float]:
    """(min, max) field confidence, (0.0, 0.0) when empty."""
    scores = [f.confidence for f in fields]
    if not scores:
        return 0.0, 0.0
    return min(scores), max(scores)
