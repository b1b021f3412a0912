# src/docextract/utils/fetcher.py
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional
from urllib.parse import unquote, urlparse

import requests

from docextract.config import load_settings
from docextract.core.errors import FetchError

logger = logging.getLogger(__name__)


def locator_extension(locator: str) -> str:
    """Lowercase file extension of a URL or path, e.g. '.pdf' (or '')."""
    parsed = urlparse(locator)
    if parsed.scheme in ("http", "https", "file"):
        path = unquote(parsed.path)
    else:
        path = locator
    return Path(path).suffix.lower()


def _local_source(locator: str) -> Path:
    parsed = urlparse(locator)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(locator)


def _download(locator: str, out: BinaryIO, timeout: float, chunk_size: int) -> None:
    try:
        with requests.get(locator, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            for chunk in response.iter_content(chunk_size=chunk_size):
                if chunk:
                    out.write(chunk)
    except requests.RequestException as exc:
        raise FetchError(f"Failed to download file: {exc}") from exc


def _copy_local(locator: str, out: BinaryIO) -> None:
    source = _local_source(locator)
    try:
        with open(source, "rb") as src:
            shutil.copyfileobj(src, out)
    except OSError as exc:
        raise FetchError(f"Failed to read file {source}: {exc}") from exc


def cleanup_temp_file(path: Path) -> None:
    """Remove a temporary file; failures are logged, never raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to delete temp file %s: %s", path, exc)


@contextmanager
def fetch_to_temp(
    locator: str,
    *,
    timeout: Optional[float] = None,
    chunk_size: Optional[int] = None,
) -> Iterator[Path]:
    """
    Materialize `locator` as a private temporary file and yield its path.

    Supports http(s) URLs (streamed with requests), file:// URLs and plain
    local paths. The temporary file keeps the locator's extension and is
    deleted on exit, including when the caller raises.
    """
    settings = load_settings().fetch
    timeout = settings.timeout if timeout is None else timeout
    chunk_size = settings.chunk_size if chunk_size is None else chunk_size

    scheme = urlparse(locator).scheme.lower()
    if scheme not in ("", "http", "https", "file") and len(scheme) > 1:
        raise FetchError(f"Unsupported locator scheme: {scheme!r}")

    fd, name = tempfile.mkstemp(prefix="doc-", suffix=locator_extension(locator))
    path = Path(name)

    try:
        with os.fdopen(fd, "wb") as out:
            if scheme in ("http", "https"):
                _download(locator, out, timeout, chunk_size)
            else:
                _copy_local(locator, out)

        logger.info("fetched %s -> %s (%d bytes)", locator, path, path.stat().st_size)
        yield path
    finally:
        cleanup_temp_file(path)
