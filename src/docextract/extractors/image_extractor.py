# src/docextract/extractors/image_extractor.py
from __future__ import annotations

import bisect
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from docextract.core.errors import StrategyError
from docextract.core.types import ExtractedField, StrategyKind
from docextract.extractors.base import ExtractionStrategy
from docextract.extractors.ocr import OcrBackend, OcrLine, PlaceholderOcrBackend
from docextract.extractors.text_extractor import (
    KEY_VALUE_CONFIDENCE,
    iter_labeled_matches,
    match_key_value_line,
    squash_key,
)

logger = logging.getLogger(__name__)


def _line_offsets(lines: Sequence[OcrLine]) -> List[int]:
    """Start offset of each line inside the newline-joined text."""
    offsets: List[int] = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line.text) + 1
    return offsets


def fields_from_ocr_lines(lines: Sequence[OcrLine]) -> List[ExtractedField]:
    """
    Labeled patterns run over the joined transcription; each hit is scaled by
    the confidence of the line it landed on. Remaining "Key: value" lines
    become fields at 0.7 x line confidence.
    """
    if not lines:
        return []

    text = "\n".join(line.text for line in lines)
    offsets = _line_offsets(lines)
    fields: List[ExtractedField] = []

    for lp, value, offset in iter_labeled_matches(text):
        idx = max(0, bisect.bisect_right(offsets, offset) - 1)
        fields.append(
            ExtractedField(
                name=lp.name,
                value=value,
                confidence=lp.confidence * lines[idx].confidence,
            )
        )

    for line in lines:
        hit = match_key_value_line(line.text)
        if not hit:
            continue
        key, value = hit
        squashed = squash_key(key)
        if any(squash_key(f.name) == squashed for f in fields):
            continue
        fields.append(
            ExtractedField(name=key, value=value, confidence=KEY_VALUE_CONFIDENCE * line.confidence)
        )

    return fields


class ImageStrategy(ExtractionStrategy):
    """Scanned documents and photos, read through an OCR backend."""

    kind = StrategyKind.IMAGE
    declared_kinds = frozenset({"image"})
    extensions = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".tif"})

    def __init__(self, backend: Optional[OcrBackend] = None) -> None:
        self.backend = backend or PlaceholderOcrBackend()

    def extract_data(self, file_path: Path) -> List[ExtractedField]:
        path = Path(file_path)
        if not path.is_file():
            raise StrategyError("Image file not found")

        logger.info("image: running OCR on %s", path)
        try:
            lines = self.backend.recognize(path)
        except StrategyError:
            raise
        except OSError as exc:
            raise StrategyError(f"Failed to extract data from image: {exc}") from exc

        fields = fields_from_ocr_lines(lines)
        logger.info("image: %d OCR lines, %d fields", len(lines), len(fields))
        return fields
