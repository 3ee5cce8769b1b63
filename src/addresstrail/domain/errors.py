"""Error hierarchy for the ingestion pipeline.

Per-record problems (``NormalizationError``) are counted and skipped; the
precondition errors abort a run before any record is read.
"""

from __future__ import annotations


class IngestError(RuntimeError):
    """Base class for ingestion failures."""


class NormalizationError(IngestError):
    """A raw registry record cannot be projected onto the domain model."""

    def __init__(self, message: str, *, organization_number: str | None = None) -> None:
        super().__init__(message)
        self.organization_number = organization_number


class InputFileMissingError(IngestError):
    """The export file to ingest does not exist."""


class StoreUnavailableError(IngestError):
    """The relational store could not be initialised."""
