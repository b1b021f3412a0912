# src/docextract/normalization/field_processor.py
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Callable, Dict, List, Sequence

from docextract.core.types import ExtractedField, StrategyKind
from docextract.normalization.normalizers import (
    normalize_amount,
    normalize_by_field_name,
    normalize_date,
    normalize_email,
    normalize_phone,
)
from docextract.normalization.scoring import score_field

logger = logging.getLogger(__name__)


_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1F\x7F]")
_FORMULA_QUOTED_RE = re.compile(r"""^=['"](.+)['"]$""", re.DOTALL)
_OCR_RUN_RE = re.compile(r"[A-Za-z0-9$]+")

_DIGIT_LOOKALIKES = {"O": "0", "o": "0", "I": "1", "l": "1"}
_LETTER_LOOKALIKES = {"0": "O", "1": "I", "$": "S"}


def _is_amount_name(lowered: str) -> bool:
    return "amount" in lowered or "total" in lowered or "price" in lowered


# ============================================================
# OCR confusion correction
# ============================================================

def _correct_ocr_run(run: str) -> str:
    """
    Fix one alphanumeric run.

    Digit-dominant runs whose letters are all look-alikes become numeric
    (O->0, I/l->1, leading S->$). Letter-dominant runs whose digits are all
    look-alikes become alphabetic (0->O, 1->I, $->S). Mixed runs such as
    "ID1234" or "INV2023" are left alone.
    """
    digits = sum(ch.isdigit() for ch in run)
    letters = sum(ch.isalpha() for ch in run)

    if digits > letters:
        letters_at = [(i, ch) for i, ch in enumerate(run) if ch.isalpha()]
        if not letters_at:
            return run
        if not all(ch in _DIGIT_LOOKALIKES or (ch == "S" and i == 0) for i, ch in letters_at):
            return run
        fixed = "".join(_DIGIT_LOOKALIKES.get(ch, ch) for ch in run)
        if fixed.startswith("S"):
            fixed = "$" + fixed[1:]
        return fixed

    if letters > digits:
        odd = [ch for ch in run if not ch.isalpha()]
        if not odd or not all(ch in _LETTER_LOOKALIKES for ch in odd):
            return run
        return "".join(_LETTER_LOOKALIKES.get(ch, ch) for ch in run)

    return run


def correct_ocr_confusions(value: str) -> str:
    """Apply look-alike correction run by run. Tokens holding '@' are skipped."""
    tokens = re.split(r"(\s+)", value)
    out = []
    for tok in tokens:
        if not tok or tok.isspace() or "@" in tok:
            out.append(tok)
            continue
        out.append(_OCR_RUN_RE.sub(lambda m: _correct_ocr_run(m.group(0)), tok))
    return "".join(out)


# ============================================================
# Format-specific passes
# ============================================================

def _process_text_field(field: ExtractedField) -> ExtractedField:
    value = re.sub(r"\s{2,}", " ", field.value).strip()
    value = re.sub(r"\r\n|\r|\n", " ", value)

    lowered = field.name.lower()
    if "date" in lowered:
        value = normalize_date(value)
    if _is_amount_name(lowered):
        value = normalize_amount(value)

    return replace(field, value=value)


def _process_image_field(field: ExtractedField) -> ExtractedField:
    value = correct_ocr_confusions(field.value)

    lowered = field.name.lower()
    if "email" in lowered:
        value = normalize_email(value)
    if "phone" in lowered:
        value = normalize_phone(value)

    return replace(field, value=value)


def _process_tabular_field(field: ExtractedField) -> ExtractedField:
    value = _FORMULA_QUOTED_RE.sub(r"\1", field.value)
    value = re.sub(r"^=", "", value)

    if _is_amount_name(field.name.lower()):
        value = normalize_amount(value)

    return replace(field, value=value)


FORMAT_PASSES: Dict[StrategyKind, Callable[[ExtractedField], ExtractedField]] = {
    StrategyKind.TEXT: _process_text_field,
    StrategyKind.IMAGE: _process_image_field,
    StrategyKind.TABULAR: _process_tabular_field,
}


# ============================================================
# Common pass
# ============================================================

def apply_common_processing(field: ExtractedField) -> ExtractedField:
    """Trim, strip control characters, then run the name-selected normalizer."""
    value = _CONTROL_CHARS_RE.sub("", field.value.strip())
    value = normalize_by_field_name(field.name, value)
    return replace(field, value=value)


# ============================================================
# Public API
# ============================================================

def process_fields(
    fields: Sequence[ExtractedField],
    strategy_kind: StrategyKind,
) -> List[ExtractedField]:
    """
    Run the format pass for `strategy_kind`, then the common pass, then
    rescore every field. The strategy-assigned confidence is kept in
    `extraction_confidence`.
    """
    format_pass = FORMAT_PASSES[strategy_kind]
    processed: List[ExtractedField] = []

    for original in fields:
        f = apply_common_processing(format_pass(original))
        f = replace(
            f,
            confidence=score_field(f),
            extraction_confidence=original.confidence,
        )
        logger.debug(
            "processed %r: %r -> %r (%.3f -> %.3f)",
            f.name, original.value, f.value, original.confidence, f.confidence,
        )
        processed.append(f)

    logger.info("field processor: %d fields processed (%s)", len(processed), strategy_kind.value)
    return processed
