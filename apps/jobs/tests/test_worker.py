import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.management import call_command

from apps.jobs.management.commands.run_job_worker import claim_next_job, process_job
from apps.jobs.models import Job
from apps.jobs.services import enqueue, enqueue_mains_evaluation
from apps.mains.models import MainsEvaluation


@pytest.fixture
def queued_evaluation(user):
    key = default_storage.save(f"answer-uploads/{user.pk}/sheet.pdf", ContentFile(b"%PDF-1.4\n%%EOF\n"))
    url = f"http://testserver/media/{key}"
    evaluation = MainsEvaluation.objects.create(user=user, answer_files=[url])
    job_id = enqueue_mains_evaluation(evaluation.pk, [url], owner=user.pk, provided_question="GST?")
    return evaluation, Job.objects.get(pk=job_id)


@pytest.mark.django_db
def test_worker_once_completes_evaluation(queued_evaluation, fake_gemini, valid_evaluation):
    evaluation, job = queued_evaluation
    fake_gemini.queue(valid_evaluation)

    call_command("run_job_worker", "--once")

    job.refresh_from_db()
    evaluation.refresh_from_db()
    assert job.status == Job.Status.SUCCEEDED
    assert job.result["status"] == "completed"
    assert job.started_at is not None and job.finished_at is not None
    assert evaluation.status == MainsEvaluation.Status.COMPLETED
    assert 'Reference question (student-provided): "GST?"' in fake_gemini.calls[0]["prompt"]


@pytest.mark.django_db
def test_worker_records_failure_on_job_and_evaluation(queued_evaluation, fake_gemini):
    evaluation, job = queued_evaluation
    fake_gemini.queue("not json at all")

    call_command("run_job_worker", "--once")

    job.refresh_from_db()
    evaluation.refresh_from_db()
    assert job.status == Job.Status.FAILED
    assert "Failed to parse AI response" in job.error
    assert evaluation.status == MainsEvaluation.Status.FAILED


@pytest.mark.django_db
def test_worker_once_with_empty_queue_returns():
    call_command("run_job_worker", "--once")

    assert not Job.objects.exists()


@pytest.mark.django_db
def test_jobs_are_claimed_oldest_first():
    first = enqueue("EVALUATE_MAINS_ANSWER", {"evaluation_id": "a"})
    enqueue("EVALUATE_MAINS_ANSWER", {"evaluation_id": "b"})

    claimed = claim_next_job()

    assert claimed.id == first
    assert claimed.status == Job.Status.RUNNING
    assert claim_next_job().id != first


@pytest.mark.django_db
def test_unknown_job_type_fails():
    job = Job.objects.get(pk=enqueue("RESIZE_IMAGES", {}))

    process_job(job)

    job.refresh_from_db()
    assert job.status == Job.Status.FAILED
    assert "Unknown job type" in job.error


@pytest.mark.django_db
def test_missing_evaluation_fails_job():
    job = Job.objects.get(pk=enqueue("EVALUATE_MAINS_ANSWER", {"evaluation_id": "8b0f5bde-6e1f-4cf4-9d5b-0b3c3e0cbd6a"}))

    process_job(job)

    job.refresh_from_db()
    assert job.status == Job.Status.FAILED
    assert "Evaluation not found" in job.error


@pytest.mark.django_db
def test_job_locked_by_another_worker_is_skipped(queued_evaluation, fake_gemini, monkeypatch):
    evaluation, job = queued_evaluation
    # skip_locked yields no rows when another worker holds the only pending job
    monkeypatch.setattr(Job.objects, "select_for_update", lambda **kwargs: Job.objects.none())

    assert claim_next_job() is None
    call_command("run_job_worker", "--once")

    job.refresh_from_db()
    evaluation.refresh_from_db()
    assert job.status == Job.Status.PENDING
    assert evaluation.status == MainsEvaluation.Status.PENDING
    assert fake_gemini.calls == []
