# src/docextract/utils/pdf_reader.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pdfplumber

from docextract.core.errors import StrategyError

logger = logging.getLogger(__name__)


def read_pages(pdf_path: Path, *, layout: bool = True) -> List[str]:
    """
    Extract raw text from each page using pdfplumber.

    `layout=True` keeps horizontal spacing so column gaps survive as runs
    of spaces. The padding layout mode adds at line ends is stripped.
    A page that fails to extract contributes an empty string; a file that
    cannot be opened raises StrategyError.
    """
    pages_text: List[str] = []

    try:
        with pdfplumber.open(str(pdf_path)) as pdf:
            for i, page in enumerate(pdf.pages, start=1):
                try:
                    text = page.extract_text(layout=layout) or ""
                    text = "\n".join(line.rstrip() for line in text.splitlines())
                except Exception as e:  # pragma: no cover
                    logger.warning("Failed to extract text from page %s: %s", i, e)
                    text = ""
                pages_text.append(text)
    except Exception as e:
        logger.error("Failed to open PDF '%s': %s", pdf_path, e)
        raise StrategyError(f"Failed to extract data from PDF: {e}") from e

    logger.debug("Read %d pages from %s", len(pages_text), pdf_path)
    return pages_text


def extract_text(pdf_path: Path, *, layout: bool = True) -> str:
    """All page texts joined with page breaks (newlines)."""
    return "\n".join(read_pages(pdf_path, layout=layout))
