# src/docextract/extractors/ocr.py
from __future__ import annotations

import base64
import json
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from openai import OpenAI

from docextract.config import OcrSettings, load_settings
from docextract.core.errors import StrategyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OcrLine:
    """One recognized line of text and the engine's confidence in it."""
    text: str
    confidence: float


class OcrBackend(Protocol):
    def recognize(self, image_path: Path) -> List[OcrLine]:
        ...


# ======================================================================
# Placeholder backend
# ======================================================================

PLACEHOLDER_LINES: Tuple[OcrLine, ...] = (
    OcrLine("Invoice Number: INV-2023-0042", 0.93),
    OcrLine("Invoice Date: 09/15/2023", 0.95),
    OcrLine("Vendor: ABC Supplies Inc.", 0.9),
    OcrLine("Total Amount: $245.67", 0.88),
    OcrLine("Tax: $18.45", 0.85),
    OcrLine("Payment Method: Credit Card", 0.9),
)


class PlaceholderOcrBackend:
    """
    Stand-in used when no OCR engine is configured. Returns a fixed invoice
    transcription without looking at the pixels.
    """

    def __init__(self, lines: Optional[Sequence[OcrLine]] = None) -> None:
        self.lines = tuple(lines) if lines is not None else PLACEHOLDER_LINES

    def recognize(self, image_path: Path) -> List[OcrLine]:
        logger.info("ocr: placeholder transcription for %s", image_path)
        return list(self.lines)


# ======================================================================
# OpenAI vision backend
# ======================================================================

SYSTEM_PROMPT = """You are an OCR engine.
Transcribe every line of text visible in the image, top to bottom.

Rules:
- Return a JSON object: {"lines": [{"text": str, "confidence": float}]}
- "confidence" is your certainty in [0, 1] that the line is transcribed exactly.
- Keep the text exactly as printed (labels, punctuation, currency symbols).
- Do not summarize, translate or add lines that are not in the image.
"""


def _strip_code_fence(content: str) -> str:
    # Unwrap ```json ... ```
    return (
        content.strip()
        .replace("```json", "")
        .replace("```", "")
        .strip()
    )


def parse_ocr_payload(content: str) -> List[OcrLine]:
    """Parse the model reply into OcrLines; raises StrategyError on bad JSON."""
    try:
        data: Any = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as exc:
        logger.debug("ocr raw content: %r", content)
        raise StrategyError(f"OCR backend returned invalid JSON: {exc}") from exc

    items = data.get("lines", []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise StrategyError("OCR backend returned an unexpected payload")

    lines: List[OcrLine] = []
    for item in items:
        if isinstance(item, str):
            text, conf = item, 0.8
        elif isinstance(item, dict):
            text = str(item.get("text") or "")
            try:
                conf = float(item.get("confidence", 0.8))
            except (TypeError, ValueError):
                conf = 0.8
        else:
            continue
        if text.strip():
            lines.append(OcrLine(text=text, confidence=max(0.0, min(1.0, conf))))

    return lines


class OpenAIVisionOcrBackend:
    """Transcribes images with an OpenAI vision-capable chat model."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 800,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key)

    def recognize(self, image_path: Path) -> List[OcrLine]:
        path = Path(image_path)
        mime = mimetypes.guess_type(path.name)[0] or "image/png"
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")

        logger.info("ocr: querying model %s for %s", self.model, path)

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": "Transcribe this document."},
                            {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{encoded}"}},
                        ],
                    },
                ],
                temperature=0.0,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            logger.error("ocr: API error: %s", exc)
            raise StrategyError(f"OCR backend request failed: {exc}") from exc

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise StrategyError("OCR backend returned an invalid response structure") from exc

        if not content:
            raise StrategyError("OCR backend returned an empty response")

        lines = parse_ocr_payload(content)
        logger.info("ocr: %d lines recognized", len(lines))
        return lines


# ======================================================================
# Factory
# ======================================================================

def build_ocr_backend(settings: Optional[OcrSettings] = None) -> OcrBackend:
    """
    Backend named by settings.backend. "openai" without OPENAI_API_KEY falls
    back to the placeholder with a warning.
    """
    settings = settings or load_settings().ocr

    if settings.backend == "openai":
        if not settings.api_key:
            logger.warning("ocr: openai backend disabled (missing OPENAI_API_KEY).")
            return PlaceholderOcrBackend()
        return OpenAIVisionOcrBackend(
            api_key=settings.api_key,
            model=settings.model,
            max_tokens=settings.max_tokens,
        )

    if settings.backend != "placeholder":
        logger.warning("ocr: unknown backend %r, using placeholder", settings.backend)
    return PlaceholderOcrBackend()
