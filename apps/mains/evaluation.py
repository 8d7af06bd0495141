"""
Background evaluation of a Mains answer.

``run_evaluation`` is the worker entry point. It moves a pending
``MainsEvaluation`` to ``completed`` or ``failed``; both are terminal and
nothing is retried automatically.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage

from apps.ai import gemini
from apps.ai.prompts import MAINS_EVALUATION_PROMPT, MAINS_REFERENCE_ANSWER, MAINS_REFERENCE_QUESTION
from apps.common.exceptions import UpstreamFailure
from apps.common.files import MIB, key_owner, mime_from_extension, storage_key_from_url
from apps.jobs.notify import notify_user
from .models import MainsEvaluation
from .serializers import EvaluationResultSerializer

logger = logging.getLogger("evaluation")

DEFAULT_MIME_TYPE = "application/pdf"
GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


class EvaluationNotFound(Exception):
    pass


class NoUsableFiles(Exception):
    pass


class InvalidEvaluationResult(UpstreamFailure):
    default_detail = "The AI evaluation did not have the expected fields."


@dataclass
class AnswerFile:
    key: str
    data: bytes
    mime_type: str


def resolve_mime_type(key: str, reported: Optional[str] = None) -> str:
    """Storage-reported type first, then the extension table, then PDF."""
    if reported and reported.lower() not in GENERIC_MIME_TYPES:
        return reported
    return mime_from_extension(key) or DEFAULT_MIME_TYPE


def load_answer_files(urls: List[str], owner_id) -> List[AnswerFile]:
    """Fetch every usable file; unusable ones are skipped with a warning."""
    max_bytes = int(settings.MAX_EVALUATION_FILE_MB * MIB)
    files: List[AnswerFile] = []
    for url in urls:
        key = storage_key_from_url(url)
        if not key:
            logger.warning("Invalid file URL, skipping: %s", url)
            continue
        if key_owner(key) != str(owner_id):
            logger.warning("File %s does not belong to user %s, skipping", key, owner_id)
            continue
        try:
            if not default_storage.exists(key):
                logger.warning("File not found in storage, skipping: %s", key)
                continue
            size = default_storage.size(key)
            if size > max_bytes:
                logger.warning("File too large for processing (%d bytes), skipping: %s", size, key)
                continue
            with default_storage.open(key, "rb") as fh:
                data = fh.read()
                reported = getattr(fh, "content_type", None)
        except OSError as e:
            logger.warning("Error reading file %s, skipping: %s", key, e)
            continue
        mime_type = resolve_mime_type(key, reported)
        logger.debug("Loaded %s (%s, %d bytes)", key, mime_type, len(data))
        files.append(AnswerFile(key=key, data=data, mime_type=mime_type))
    return files


def build_prompt(provided_question: Optional[str] = None, provided_answer_text: Optional[str] = None) -> str:
    reference = ""
    if provided_question:
        reference += MAINS_REFERENCE_QUESTION.format(question=provided_question)
    if provided_answer_text:
        reference += MAINS_REFERENCE_ANSWER.format(answer_text=provided_answer_text)
    return MAINS_EVALUATION_PROMPT.format(reference=reference)


def validate_result(parsed: Any) -> Dict[str, Any]:
    if not isinstance(parsed, dict):
        raise InvalidEvaluationResult("AI evaluation is not a JSON object")
    serializer = EvaluationResultSerializer(data=parsed)
    if not serializer.is_valid():
        raise InvalidEvaluationResult(f"AI evaluation failed validation: {serializer.errors}")
    return dict(serializer.validated_data)


def evaluate_files(files: List[AnswerFile], provided_question=None, provided_answer_text=None) -> Dict[str, Any]:
    client = gemini.get_client()
    parts = [gemini.file_part(f.data, f.mime_type) for f in files]
    parsed = client.generate_json(
        build_prompt(provided_question, provided_answer_text),
        parts=parts,
        temperature=0.4,
        max_output_tokens=8192,
    )
    return validate_result(parsed)


def _notify(evaluation: MainsEvaluation) -> None:
    notify_user(evaluation.user_id, {
        "event": "evaluation_status",
        "evaluation_id": str(evaluation.pk),
        "status": evaluation.status,
    })


def run_evaluation(
    evaluation_id,
    answer_files: Optional[List[str]] = None,
    provided_question: Optional[str] = None,
    provided_answer_text: Optional[str] = None,
) -> Dict[str, Any]:
    """Evaluate one pending submission and record the terminal status.

    Fatal errors mark the evaluation failed and are re-raised for the caller
    (the job worker records them on the Job row).
    """
    try:
        evaluation = MainsEvaluation.objects.get(pk=evaluation_id)
    except (MainsEvaluation.DoesNotExist, ValidationError, ValueError) as e:
        raise EvaluationNotFound(f"Evaluation not found: {evaluation_id}") from e

    if evaluation.is_terminal:
        logger.info("Evaluation %s already %s, skipping", evaluation.pk, evaluation.status)
        return {"evaluation_id": str(evaluation.pk), "status": evaluation.status, "skipped": True}

    urls = answer_files if answer_files is not None else (evaluation.answer_files or [])
    logger.info("Processing evaluation %s files=%d", evaluation.pk, len(urls))

    try:
        files = load_answer_files(urls, evaluation.user_id)
        if not files:
            raise NoUsableFiles("Failed to process any files from storage")
        logger.info("Evaluation %s prepared %d/%d file(s)", evaluation.pk, len(files), len(urls))

        result = evaluate_files(files, provided_question, provided_answer_text)
    except Exception as e:
        raw_text = getattr(e, "raw_text", None)
        if raw_text is not None:
            logger.error("Evaluation %s failed: %s raw_text=%s", evaluation.pk, e, raw_text[:2000])
        else:
            logger.error("Evaluation %s failed: %s", evaluation.pk, e, exc_info=True)
        _mark_failed(evaluation)
        raise

    extracted = (result.get("extracted_question") or "").strip()
    if not evaluation.mark_completed(result, question=extracted or None):
        logger.warning("Evaluation %s left pending state before completion was recorded", evaluation.pk)
        evaluation.refresh_from_db()
        return {"evaluation_id": str(evaluation.pk), "status": evaluation.status, "skipped": True}

    logger.info("Evaluation %s completed score=%s", evaluation.pk, result.get("score"))
    _notify(evaluation)
    return {"evaluation_id": str(evaluation.pk), "status": evaluation.status, "files_used": len(files)}


def _mark_failed(evaluation: MainsEvaluation) -> None:
    try:
        if evaluation.mark_failed():
            _notify(evaluation)
    except Exception:
        # no retry; the row stays pending
        logger.exception("Failed to update evaluation %s to failed", evaluation.pk)


def run_evaluation_safely(evaluation_id, **kwargs) -> None:
    """Thread-pool entry point; errors are already recorded on the evaluation."""
    from django.db import close_old_connections

    try:
        run_evaluation(evaluation_id, **kwargs)
    except Exception:
        logger.debug("Background evaluation %s ended with an error", evaluation_id, exc_info=True)
    finally:
        close_old_connections()
