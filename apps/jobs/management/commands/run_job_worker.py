import logging
import time

from django.core.management.base import BaseCommand
from django.db import close_old_connections, transaction
from django.utils import timezone

from apps.jobs.models import Job
from apps.jobs.services import EVALUATE_MAINS_ANSWER
from apps.mains.evaluation import run_evaluation

logger = logging.getLogger("evaluation")


def handle_mains_evaluation(job: Job):
    payload = job.payload or {}
    return run_evaluation(
        payload["evaluation_id"],
        answer_files=payload.get("answer_files"),
        provided_question=payload.get("provided_question"),
        provided_answer_text=payload.get("provided_answer_text"),
    )


HANDLERS = {
    EVALUATE_MAINS_ANSWER: handle_mains_evaluation,
}


def claim_next_job():
    """Move the oldest unlocked pending job to running; None when there is none.

    Rows held by another worker are skipped rather than waited on.
    """
    with transaction.atomic():
        job = (
            Job.objects
            .select_for_update(skip_locked=True)
            .filter(status=Job.Status.PENDING)
            .order_by("created_at", "id")
            .first()
        )
        if job is None:
            return None
        job.status = Job.Status.RUNNING
        job.started_at = timezone.now()
        job.save(update_fields=["status", "started_at", "updated_at"])
    return job


def process_job(job: Job) -> Job:
    try:
        handler = HANDLERS.get(job.type)
        if not handler:
            raise ValueError(f"Unknown job type: {job.type}")
        result = handler(job)

        job.status = Job.Status.SUCCEEDED
        job.result = result
        job.finished_at = timezone.now()
        job.save(update_fields=["status", "result", "finished_at", "updated_at"])
        logger.info("job=%s type=%s succeeded", job.id, job.type)
    except Exception as e:
        # Failures are terminal; a failed evaluation is resubmitted as a new job by the user.
        logger.exception("job=%s type=%s failed", job.id, job.type)
        job.status = Job.Status.FAILED
        job.error = str(e)
        job.finished_at = timezone.now()
        job.save(update_fields=["status", "error", "finished_at", "updated_at"])
    return job


class Command(BaseCommand):
    help = "Run simple DB-backed job worker"

    def add_arguments(self, parser):
        parser.add_argument("--once", action="store_true", help="Process at most one job and exit")
        parser.add_argument("--idle-sleep", type=float, default=1.0, help="Seconds to wait when the queue is empty")

    def handle(self, *args, **options):
        run_once = options.get("once", False)
        idle_sleep = options.get("idle_sleep", 1.0)
        logger.info("job worker started once=%s", run_once)
        while True:
            job = claim_next_job()
            if not job:
                if run_once:
                    return
                time.sleep(idle_sleep)
                # drop connections the database closed while we were idle
                close_old_connections()
                continue

            process_job(job)
            if run_once:
                return
            time.sleep(0.1)
