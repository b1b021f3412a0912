# src/docextract/core/types.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class StrategyKind(str, Enum):
    """Closed set of extraction strategies. The field processor keys on it."""

    TEXT = "text"
    TABULAR = "tabular"
    IMAGE = "image"


@dataclass
class ExtractedField:
    """
    One extracted (name, value, confidence) triple.

    `value` is always a string, even for amounts and dates.
    `extraction_confidence` keeps the strategy-assigned score once the
    field processor has rescored the field.
    """
    name: str
    value: str
    confidence: float
    is_valid: Optional[bool] = None
    extraction_confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractionResult:
    """Fields plus the document-level weighted confidence."""
    fields: List[ExtractedField] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": [f.to_dict() for f in self.fields],
            "confidence": self.confidence,
        }
