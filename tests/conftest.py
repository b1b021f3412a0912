# tests/conftest.py
from __future__ import annotations

import csv
from pathlib import Path
from typing import Callable, List, Sequence, Tuple, Union

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from docextract.config import load_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for var in (
        "DOCEXTRACT_LOG_LEVEL",
        "DOCEXTRACT_FETCH_TIMEOUT",
        "DOCEXTRACT_OCR_BACKEND",
        "DOCEXTRACT_OCR_MODEL",
        "DOCEXTRACT_SETTINGS",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def make_pdf(tmp_path) -> Callable[[Sequence[str], str], Path]:
    """
    Write one PDF page with one text line per entry. A tuple entry is drawn
    as table cells spaced 150pt apart.
    """

    def _make(lines: Sequence[Union[str, Tuple[str, ...]]], name: str = "invoice.pdf") -> Path:
        path = tmp_path / name
        c = canvas.Canvas(str(path), pagesize=A4)
        c.setFont("Helvetica", 11)
        y = A4[1] - 72
        for line in lines:
            if isinstance(line, tuple):
                for i, cell in enumerate(line):
                    c.drawString(72 + 150 * i, y, cell)
            else:
                c.drawString(72, y, line)
            y -= 18
        c.showPage()
        c.save()
        return path

    return _make


@pytest.fixture
def make_csv(tmp_path) -> Callable[[List[List[str]], str], Path]:
    def _make(rows: List[List[str]], name: str = "table.csv") -> Path:
        path = tmp_path / name
        with path.open("w", newline="", encoding="utf-8") as f:
            csv.writer(f).writerows(rows)
        return path

    return _make
