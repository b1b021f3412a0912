# src/docextract/pipeline/document_parser.py
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from docextract.config import load_settings
from docextract.core.errors import ExtractionError, FetchError, UnsupportedFormatError
from docextract.core.types import ExtractionResult
from docextract.extractors.base import ExtractionStrategy
from docextract.extractors.image_extractor import ImageStrategy
from docextract.extractors.ocr import build_ocr_backend
from docextract.extractors.table_extractor import TabularStrategy
from docextract.extractors.text_extractor import TextStrategy
from docextract.normalization.field_processor import process_fields
from docextract.normalization.scoring import confidence_range, overall_confidence
from docextract.utils.fetcher import fetch_to_temp, locator_extension

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], AbstractContextManager]


def default_strategies() -> List[ExtractionStrategy]:
    """Text, tabular, image; first match wins."""
    settings = load_settings()
    return [
        TextStrategy(layout=settings.pdf.layout),
        TabularStrategy(),
        ImageStrategy(build_ocr_backend(settings.ocr)),
    ]


class DocumentParser:
    """
    Orchestrates one extraction:

        select strategy -> fetch to temp file -> extract -> process -> score

    The temporary file is removed on every exit path. FetchError and
    UnsupportedFormatError reach the caller unchanged; everything else is
    wrapped as ExtractionError("Failed to parse document: ...").
    """

    def __init__(
        self,
        strategies: Optional[Sequence[ExtractionStrategy]] = None,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.fetcher = fetcher or fetch_to_temp

    def select_strategy(self, declared_kind: str, extension: str) -> ExtractionStrategy:
        for strategy in self.strategies:
            if strategy.supports_file_type(declared_kind, extension):
                logger.debug("selected %r for kind=%r ext=%r", strategy, declared_kind, extension)
                return strategy
        raise UnsupportedFormatError(declared_kind, extension)

    def parse_document(self, source_locator: str, declared_kind: str) -> ExtractionResult:
        extension = locator_extension(source_locator)
        strategy = self.select_strategy(declared_kind, extension)

        logger.info("parsing %s (kind=%s) with %r", source_locator, declared_kind, strategy)

        try:
            with self.fetcher(source_locator) as temp_path:
                raw_fields = strategy.extract_data(Path(temp_path))

            fields = process_fields(raw_fields, strategy.kind)
            result = ExtractionResult(fields=fields, confidence=overall_confidence(fields))
        except FetchError:
            raise
        except Exception as exc:
            logger.exception("parse failed for %s: %s", source_locator, exc)
            raise ExtractionError(f"Failed to parse document: {exc}") from exc

        low, high = confidence_range(fields)
        logger.info(
            "parsed %s: %d fields, confidence %.3f (field range %.3f-%.3f)",
            source_locator, len(fields), result.confidence, low, high,
        )
        return result


def parse_document(source_locator: str, declared_kind: str) -> ExtractionResult:
    """Parse with the default strategy set and fetcher."""
    return DocumentParser().parse_document(source_locator, declared_kind)
