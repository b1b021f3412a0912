# src/docextract/utils/numeric_parser.py
from __future__ import annotations

import re
from typing import Optional


# All known whitespace variants (regular + non-breaking)
SPACE_CHARS = [
    "\u0020",  # normal space
    "\u00A0",  # NBSP
    "\u2007",  # figure space
    "\u202F",  # narrow NBSP
]

_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+))")
_GROUPED_RE = re.compile(r"^[+-]?\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_PLAIN_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)$")


def _normalize_spaces(s: str) -> str:
    """Replace all types of weird spaces with a normal space."""
    for ch in SPACE_CHARS:
        s = s.replace(ch, " ")
    return s


def parse_leading_float(raw: Optional[str]) -> Optional[float]:
    """
    Lenient reader: parse the longest numeric prefix and ignore the rest.

      "12.50"   -> 12.5
      "1-2"     -> 1.0
      "-"       -> None
    """
    if not raw:
        return None

    m = _LEADING_FLOAT_RE.match(raw)
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def parse_number(raw: Optional[str]) -> Optional[float]:
    """
    Strict reader for spreadsheet cells. The whole cell must be a number.

    Handles:
      - 10, 10.00, -3.5, .5
      - 1,234.50 (comma thousands)
      - $ 12.00, €12, £12 (leading currency symbol)
      - NBSP / figure spaces
    Returns None for anything else ("10 units", "n/a", "").
    """
    if raw is None:
        return None

    s = _normalize_spaces(str(raw)).strip()
    s = re.sub(r"^[$€£]\s*", "", s)
    if not s:
        return None

    if _GROUPED_RE.match(s):
        s = s.replace(",", "")

    if not _PLAIN_RE.match(s):
        return None

    try:
        return float(s)
    except ValueError:
        return None
