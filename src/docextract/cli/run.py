# src/docextract/cli/run.py
from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from docextract.config import load_settings, setup_logging
from docextract.core.errors import ExtractionError
from docextract.pipeline.document_parser import DocumentParser
from docextract.pipeline.io_utils import result_to_payload, save_result_to_csv, save_result_to_json

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract structured fields from a PDF, text, spreadsheet or image document."
    )
    parser.add_argument(
        "locator",
        help="Local path, file:// URL or http(s) URL of the document.",
    )
    parser.add_argument(
        "--kind",
        "-k",
        default="",
        help="Declared document kind: pdf, text, spreadsheet or image (default: infer from extension).",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Write the result JSON here instead of printing it.",
    )
    parser.add_argument(
        "--csv",
        help="Also write the extracted fields as CSV.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: from settings).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level or load_settings().log_level)

    logger.info("CLI: parsing '%s' (kind=%s)", args.locator, args.kind or "auto")

    try:
        result = DocumentParser().parse_document(args.locator, args.kind)
    except ExtractionError as exc:
        logger.error("CLI: %s", exc)
        return 1

    if args.output:
        save_result_to_json(result, args.output, source=args.locator)
    else:
        print(json.dumps(result_to_payload(result, args.locator), indent=2))

    if args.csv:
        save_result_to_csv(result, args.csv)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
