# src/docextract/core/errors.py

from __future__ import annotations


class ExtractionError(Exception):
    """Base error raised by the extraction core. The message is the cause."""


class FetchError(ExtractionError):
    """The input bytes could not be materialized locally."""


class UnsupportedFormatError(ExtractionError):
    """No strategy accepts the declared kind or the file extension."""

    def __init__(self, declared_kind: str, extension: str) -> None:
        self.declared_kind = declared_kind
        self.extension = extension
        super().__init__(
            f"No extraction strategy available for file type: "
            f"{declared_kind!r} (extension {extension or '<none>'!r})"
        )


class StrategyError(ExtractionError):
    """A strategy could not parse its input."""
