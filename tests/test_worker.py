# tests/test_worker.py
import pytest

from docextract.core.errors import FetchError
from docextract.pipeline.worker import (
    ExtractionJob,
    ExtractionWorker,
    InMemoryDocumentStore,
    InMemoryScheduler,
)


@pytest.fixture
def invoice_csv(make_csv):
    return make_csv([
        ["Invoice #", "Customer", "Amount"],
        ["INV-1", "Acme", "100"],
        ["INV-2", "Globex", "50"],
    ])


def test_process_document_success(invoice_csv):
    store = InMemoryDocumentStore()
    store.add_document("doc-1", str(invoice_csv), "spreadsheet")
    worker = ExtractionWorker(store, batch_size=2)

    outcome = worker.process_document(ExtractionJob("doc-1"))

    record = store.get_document("doc-1")
    stored = store.fields["doc-1"]

    assert outcome == {"document_id": "doc-1", "status": "completed", "fields_count": len(stored)}
    assert record.status == "completed"
    assert record.extraction_status == "completed"
    assert 0.0 < record.confidence <= 1.0
    assert record.error is None
    assert all(f.is_valid is True for f in stored)
    assert all(n <= 2 for n in store.insert_calls)
    assert sum(store.insert_calls) == len(stored)


def test_reprocessing_replaces_fields(invoice_csv):
    store = InMemoryDocumentStore()
    store.add_document("doc-1", str(invoice_csv), "spreadsheet")
    worker = ExtractionWorker(store)

    worker.process_document(ExtractionJob("doc-1"))
    first = len(store.fields["doc-1"])
    worker.process_document(ExtractionJob("doc-1"))

    assert len(store.fields["doc-1"]) == first


def test_process_document_failure(tmp_path):
    store = InMemoryDocumentStore()
    store.add_document("doc-2", str(tmp_path / "missing.pdf"), "pdf")
    worker = ExtractionWorker(store)

    with pytest.raises(FetchError):
        worker.process_document(ExtractionJob("doc-2"))

    record = store.get_document("doc-2")
    assert record.status == "failed"
    assert record.extraction_status == "failed"
    assert "missing.pdf" in record.error
    assert "doc-2" not in store.fields


def test_unknown_document_is_reraised():
    worker = ExtractionWorker(InMemoryDocumentStore())

    with pytest.raises(KeyError):
        worker.process_document(ExtractionJob("ghost"))


def test_scheduler_runs_jobs_in_order(invoice_csv, tmp_path):
    store = InMemoryDocumentStore()
    store.add_document("ok", str(invoice_csv), "spreadsheet")
    store.add_document("bad", str(tmp_path / "missing.csv"), "spreadsheet")
    worker = ExtractionWorker(store)
    scheduler = InMemoryScheduler(worker.process_document)

    job_ok = worker.submit(scheduler, "ok")
    job_bad = worker.submit(scheduler, "bad")
    assert job_ok and job_bad and job_ok != job_bad
    assert len(scheduler) == 2

    results = scheduler.run_pending()

    assert results[0]["status"] == "completed"
    assert results[1] is None
    assert len(scheduler) == 0
    assert store.get_document("bad").status == "failed"


def test_submit_skips_completed_unless_forced(invoice_csv):
    store = InMemoryDocumentStore()
    store.add_document("doc-1", str(invoice_csv), "spreadsheet")
    worker = ExtractionWorker(store)
    scheduler = InMemoryScheduler(worker.process_document)

    worker.submit(scheduler, "doc-1")
    scheduler.run_pending()

    assert worker.submit(scheduler, "doc-1") is None
    assert worker.submit(scheduler, "doc-1", force=True) is not None
