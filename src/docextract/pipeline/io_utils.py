# src/docextract/pipeline/io_utils.py
from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from docextract.core.types import ExtractionResult

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["name", "value", "confidence", "extraction_confidence", "is_valid"]


def result_to_payload(result: ExtractionResult, source: Optional[str] = None) -> Dict[str, Any]:
    payload = result.to_dict()
    if source is not None:
        payload = {"source": source, **payload}
    return payload


def save_result_to_json(result: ExtractionResult, out_path: str, source: Optional[str] = None) -> Path:
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result_to_payload(result, source), indent=2), encoding="utf-8")
    logger.info("saved %d fields to %s", len(result.fields), path)
    return path


def save_result_to_csv(result: ExtractionResult, out_path: str) -> Path:
    """
    Save extracted fields to a CSV file with a stable, flat schema.
    """
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

        for field in result.fields:
            writer.writerow([
                field.name,
                field.value,
                f"{field.confidence:.4f}",
                "" if field.extraction_confidence is None else f"{field.extraction_confidence:.4f}",
                "" if field.is_valid is None else field.is_valid,
            ])

    logger.info("saved %d rows to %s", len(result.fields), path)
    return path
