import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from django.conf import settings

from apps.jobs.services import enqueue_mains_evaluation
from .evaluation import run_evaluation_safely
from .models import MainsEvaluation

logger = logging.getLogger("evaluation")

QUEUE = "queue"
THREAD = "thread"

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def get_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=getattr(settings, "EVALUATION_THREAD_WORKERS", 4),
                thread_name_prefix="mains-eval",
            )
        return _executor


def dispatch_evaluation(
    evaluation: MainsEvaluation,
    provided_question: Optional[str] = None,
    provided_answer_text: Optional[str] = None,
):
    """Hand the evaluation to a background worker and return immediately.

    Returns the Job id in queue mode and the Future in thread mode.
    """
    mode = getattr(settings, "EVALUATION_DISPATCH_MODE", QUEUE)
    if mode == THREAD:
        future = get_executor().submit(
            run_evaluation_safely,
            evaluation.pk,
            answer_files=list(evaluation.answer_files),
            provided_question=provided_question,
            provided_answer_text=provided_answer_text,
        )
        logger.info("evaluation %s submitted to thread pool", evaluation.pk)
        return future
    if mode != QUEUE:
        raise ValueError(f"Unknown EVALUATION_DISPATCH_MODE: {mode}")

    job_id = enqueue_mains_evaluation(
        evaluation.pk,
        evaluation.answer_files,
        owner=evaluation.user_id,
        provided_question=provided_question,
        provided_answer_text=provided_answer_text,
    )
    logger.info("evaluation %s queued job=%s", evaluation.pk, job_id)
    return job_id
