# src/docextract/pipeline/worker.py
from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, Sequence

from docextract.core.types import ExtractedField
from docextract.pipeline.document_parser import DocumentParser

logger = logging.getLogger(__name__)

FIELD_BATCH_SIZE = 50

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


# ======================================================================
# Jobs and scheduling
# ======================================================================

@dataclass(frozen=True)
class ExtractionJob:
    document_id: str
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class Scheduler(Protocol):
    def enqueue(self, job: ExtractionJob) -> str:
        ...


class InMemoryScheduler:
    """FIFO queue drained explicitly with `run_pending()`."""

    def __init__(self, handler: Callable[[ExtractionJob], Any]) -> None:
        self.handler = handler
        self._queue: Deque[ExtractionJob] = deque()

    def enqueue(self, job: ExtractionJob) -> str:
        self._queue.append(job)
        logger.info("queued job %s for document %s", job.job_id, job.document_id)
        return job.job_id

    def __len__(self) -> int:
        return len(self._queue)

    def run_pending(self) -> List[Any]:
        """
        Run queued jobs in order. A failing job is logged and does not stop
        the rest of the queue; its slot in the returned list is None.
        """
        results: List[Any] = []
        while self._queue:
            job = self._queue.popleft()
            try:
                results.append(self.handler(job))
            except Exception as exc:
                logger.error("job %s failed: %s", job.job_id, exc)
                results.append(None)
        return results


# ======================================================================
# Storage
# ======================================================================

@dataclass
class DocumentRecord:
    document_id: str
    source_locator: str
    declared_kind: str
    status: str = STATUS_PENDING
    extraction_status: Optional[str] = None
    confidence: Optional[float] = None
    error: Optional[str] = None


class DocumentStore(Protocol):
    def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        ...

    def set_document_status(self, document_id: str, status: str, error: Optional[str] = None) -> None:
        ...

    def upsert_extraction(
        self,
        document_id: str,
        status: str,
        confidence: Optional[float] = None,
        error: Optional[str] = None,
    ) -> None:
        ...

    def delete_fields(self, document_id: str) -> None:
        ...

    def insert_fields(self, document_id: str, fields: Sequence[ExtractedField]) -> None:
        ...


class InMemoryDocumentStore:
    """Dict-backed DocumentStore, for tests and single-process use."""

    def __init__(self) -> None:
        self.documents: Dict[str, DocumentRecord] = {}
        self.fields: Dict[str, List[ExtractedField]] = {}
        self.insert_calls: List[int] = []

    def add_document(self, document_id: str, source_locator: str, declared_kind: str) -> DocumentRecord:
        record = DocumentRecord(document_id, source_locator, declared_kind)
        self.documents[document_id] = record
        return record

    def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        return self.documents.get(document_id)

    def _require(self, document_id: str) -> DocumentRecord:
        record = self.documents.get(document_id)
        if record is None:
            raise KeyError(f"Document not found: {document_id}")
        return record

    def set_document_status(self, document_id: str, status: str, error: Optional[str] = None) -> None:
        record = self._require(document_id)
        record.status = status
        record.error = error

    def upsert_extraction(
        self,
        document_id: str,
        status: str,
        confidence: Optional[float] = None,
        error: Optional[str] = None,
    ) -> None:
        record = self._require(document_id)
        record.extraction_status = status
        if confidence is not None:
            record.confidence = confidence
        record.error = error

    def delete_fields(self, document_id: str) -> None:
        self.fields.pop(document_id, None)

    def insert_fields(self, document_id: str, fields: Sequence[ExtractedField]) -> None:
        self.insert_calls.append(len(fields))
        self.fields.setdefault(document_id, []).extend(fields)


# ======================================================================
# Worker
# ======================================================================

class ExtractionWorker:
    """
    Runs one extraction job against a DocumentStore:

      1. document -> processing, extraction -> processing
      2. parse the document
      3. extraction -> completed (with confidence)
      4. replace stored fields, inserted in batches, marked valid
      5. document -> completed

    Any failure marks both records failed with the error message, then
    re-raises the original exception.
    """

    def __init__(
        self,
        store: DocumentStore,
        parser: Optional[DocumentParser] = None,
        batch_size: int = FIELD_BATCH_SIZE,
    ) -> None:
        self.store = store
        self.parser = parser or DocumentParser()
        self.batch_size = batch_size

    def process_document(self, job: ExtractionJob) -> Dict[str, Any]:
        document_id = job.document_id
        logger.info("worker: job %s, document %s", job.job_id, document_id)

        try:
            document = self.store.get_document(document_id)
            if document is None:
                raise KeyError(f"Document not found: {document_id}")

            self.store.set_document_status(document_id, STATUS_PROCESSING)
            self.store.upsert_extraction(document_id, STATUS_PROCESSING)

            result = self.parser.parse_document(document.source_locator, document.declared_kind)

            self.store.upsert_extraction(document_id, STATUS_COMPLETED, confidence=result.confidence)

            self.store.delete_fields(document_id)
            valid = [replace(f, is_valid=True) for f in result.fields]
            for start in range(0, len(valid), self.batch_size):
                self.store.insert_fields(document_id, valid[start:start + self.batch_size])

            self.store.set_document_status(document_id, STATUS_COMPLETED)
        except Exception as exc:
            logger.error("worker: document %s failed: %s", document_id, exc)
            self.handle_failed_job(document_id, exc)
            raise

        logger.info("worker: document %s completed with %d fields", document_id, len(valid))
        return {"document_id": document_id, "status": STATUS_COMPLETED, "fields_count": len(valid)}

    def handle_failed_job(self, document_id: str, error: BaseException) -> None:
        """Record the failure; errors while recording are logged only."""
        message = str(error)
        try:
            self.store.set_document_status(document_id, STATUS_FAILED, error=message)
            self.store.upsert_extraction(document_id, STATUS_FAILED, error=message)
        except Exception as exc:
            logger.error("worker: could not record failure for %s: %s", document_id, exc)

    def submit(self, scheduler: Scheduler, document_id: str, force: bool = False) -> Optional[str]:
        """
        Queue a document. Already-completed documents are skipped unless
        `force` is set; returns the job id or None.
        """
        document = self.store.get_document(document_id)
        if document is not None and document.status == STATUS_COMPLETED and not force:
            logger.info("worker: document %s already completed, skipping", document_id)
            return None
        return scheduler.enqueue(ExtractionJob(document_id))
