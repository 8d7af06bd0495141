from typing import Any, Dict, Optional

from apps.jobs.models import Job

EVALUATE_MAINS_ANSWER = "EVALUATE_MAINS_ANSWER"


def enqueue(job_type: str, payload: Optional[Dict[str, Any]] = None, owner: Optional[str] = None) -> int:
    job = Job.objects.create(type=job_type, payload=payload or {}, owner=owner)
    return job.id


def enqueue_mains_evaluation(
    evaluation_id,
    answer_files,
    owner,
    provided_question: Optional[str] = None,
    provided_answer_text: Optional[str] = None,
) -> int:
    return enqueue(
        EVALUATE_MAINS_ANSWER,
        {
            "evaluation_id": str(evaluation_id),
            "answer_files": list(answer_files),
            "provided_question": provided_question,
            "provided_answer_text": provided_answer_text,
        },
        owner=str(owner),
    )
