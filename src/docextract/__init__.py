from docextract.core.errors import (
    ExtractionError,
    FetchError,
    StrategyError,
    UnsupportedFormatError,
)
from docextract.core.types import ExtractedField, ExtractionResult, StrategyKind
from docextract.pipeline.document_parser import DocumentParser, parse_document

__all__ = [
    "DocumentParser",
    "ExtractedField",
    "ExtractionError",
    "ExtractionResult",
    "FetchError",
    "StrategyError",
    "StrategyKind",
    "UnsupportedFormatError",
    "parse_document",
]
