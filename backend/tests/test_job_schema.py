import pytest
from pydantic import ValidationError

from blueprint_viewer.schemas.job import JobSnapshot, JobStatus


def test_job_snapshot_accepts_wire_alias():
    job = JobSnapshot.model_validate({"id": "j1", "status": "processing", "blueprintData": {"svg": "<svg/>"}})
    assert job.status == JobStatus.PROCESSING
    assert job.blueprint_data == {"svg": "<svg/>"}


def test_status_is_normalized():
    assert JobSnapshot(status=" Capturing ").status == JobStatus.CAPTURING
    assert JobSnapshot(status="ERROR").status == JobStatus.FAILED


def test_defaults_and_unknown_fields():
    job = JobSnapshot.model_validate({"owner": "someone"})
    assert job.status == JobStatus.COMPLETE
    assert job.blueprint_data is None


def test_unknown_status_rejected():
    with pytest.raises(ValidationError):
        JobSnapshot(status="paused")
