"""Tests for ingestion models."""

from albumcast.models.ingest import BatchJob, BatchStatus, IngestRecord


def _record() -> IngestRecord:
    return IngestRecord(
        storage_key="images/42/beach.jpg", album_id=42, user_id=1, file_name="beach.jpg"
    )


def test_event_record_shape():
    """Records render in the storage-event shape the classifiers read."""
    event = _record().to_event_record("uploads")

    assert event["s3"]["bucket"]["name"] == "uploads"
    assert event["s3"]["object"]["key"] == "images/42/beach.jpg"
    assert event["metadata"] == {"albumId": 42, "userId": 1, "fileName": "beach.jpg"}


def test_batch_job_defaults():
    job = BatchJob(records=[_record()])

    assert job.status == BatchStatus.ENQUEUED
    assert job.attempts == 0
    assert job.id
    assert not job.is_terminal


def test_batch_job_terminal_states():
    job = BatchJob(records=[_record()])
    job.status = BatchStatus.RETRYING
    assert not job.is_terminal
    job.status = BatchStatus.EXHAUSTED
    assert job.is_terminal
    job.status = BatchStatus.COMPLETED
    assert job.is_terminal
