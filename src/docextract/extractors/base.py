# src/docextract/extractors/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import FrozenSet, List

from docextract.core.types import ExtractedField, StrategyKind


class ExtractionStrategy(ABC):
    """
    One format-specific extractor.

    A strategy accepts a file when the declared kind OR the extension is in
    its allow-lists. `extract_data` raises StrategyError on unreadable input.
    """

    kind: StrategyKind
    declared_kinds: FrozenSet[str] = frozenset()
    extensions: FrozenSet[str] = frozenset()

    def supports_file_type(self, declared_kind: str, extension: str) -> bool:
        kind = (declared_kind or "").strip().lower()
        ext = (extension or "").strip().lower()
        return kind in self.declared_kinds or ext in self.extensions

    @abstractmethod
    def extract_data(self, file_path: Path) -> List[ExtractedField]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value})"
