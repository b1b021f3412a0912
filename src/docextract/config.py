# src/docextract/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import logging
import os
import yaml

# Load .env as early as possible
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_SETTINGS_PATH = BASE_DIR / "settings.yaml"


def load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class FetchSettings:
    timeout: float = 30.0
    chunk_size: int = 65536


@dataclass(frozen=True)
class PdfSettings:
    layout: bool = True


@dataclass(frozen=True)
class OcrSettings:
    backend: str = "placeholder"
    model: str = "gpt-4o-mini"
    max_tokens: int = 800
    api_key: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    fetch: FetchSettings = field(default_factory=FetchSettings)
    pdf: PdfSettings = field(default_factory=PdfSettings)
    ocr: OcrSettings = field(default_factory=OcrSettings)


def _settings_from_mapping(data: Dict[str, Any]) -> Settings:
    fetch = data.get("fetch") or {}
    pdf = data.get("pdf") or {}
    ocr = data.get("ocr") or {}

    return Settings(
        log_level=os.getenv("DOCEXTRACT_LOG_LEVEL", data.get("log_level", "INFO")),
        fetch=FetchSettings(
            timeout=float(os.getenv("DOCEXTRACT_FETCH_TIMEOUT", fetch.get("timeout", 30))),
            chunk_size=int(fetch.get("chunk_size", 65536)),
        ),
        pdf=PdfSettings(layout=bool(pdf.get("layout", True))),
        ocr=OcrSettings(
            backend=os.getenv("DOCEXTRACT_OCR_BACKEND", ocr.get("backend", "placeholder")).lower(),
            model=os.getenv("DOCEXTRACT_OCR_MODEL", ocr.get("model", "gpt-4o-mini")),
            max_tokens=int(ocr.get("max_tokens", 800)),
            api_key=os.getenv("OPENAI_API_KEY"),
        ),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """
    Read the packaged settings.yaml (or the file named by
    DOCEXTRACT_SETTINGS) and overlay environment variables.
    Cached; call `load_settings.cache_clear()` after changing the env.
    """
    override = os.getenv("DOCEXTRACT_SETTINGS")
    path = Path(override) if override else DEFAULT_SETTINGS_PATH
    return _settings_from_mapping(load_yaml(path))


def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logger. Safe to call multiple times.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
