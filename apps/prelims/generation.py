import logging
from typing import Any, Dict, List, Mapping, Optional

from django.conf import settings

from apps.ai import gemini
from apps.ai.prompts import DIFFICULTY_DESCRIPTIONS, PRELIMS_GENERATION_PROMPT, WRONG_ANSWER_EXPLANATION_PROMPT
from apps.common.exceptions import UpstreamFailure
from .serializers import GeneratedQuestionsSerializer

logger = logging.getLogger(__name__)


def generate_questions(topic: str, num_questions: int, difficulty: str) -> List[Dict[str, Any]]:
    """Ask the model for MCQs on ``topic`` and return the validated list.

    The requested count is only an instruction to the model; any list of one to
    five well-formed questions is accepted.
    """
    prompt = PRELIMS_GENERATION_PROMPT.format(
        num_questions=num_questions,
        topic=topic,
        difficulty_description=DIFFICULTY_DESCRIPTIONS[difficulty],
    )
    parsed = gemini.get_client().generate_json(prompt, temperature=0.7)
    if not isinstance(parsed, dict):
        raise UpstreamFailure("Failed to generate questions")

    serializer = GeneratedQuestionsSerializer(data=parsed)
    if not serializer.is_valid():
        logger.error("generated questions failed validation topic=%s errors=%s", topic, serializer.errors)
        raise UpstreamFailure("Failed to generate questions")

    questions = [dict(q) for q in serializer.validated_data["questions"]]
    if len(questions) != num_questions:
        logger.info("model returned %d question(s), %d requested", len(questions), num_questions)
    return questions


def grade_answers(questions: List[Mapping[str, Any]], answers: Mapping[str, str]) -> int:
    """Number of questions whose chosen option equals the correct one."""
    score = 0
    for index, question in enumerate(questions):
        chosen: Optional[str] = answers.get(str(index))
        if chosen and chosen.lower() == str(question.get("correct_answer", "")).lower():
            score += 1
    return score


def explain_wrong_answer(
    question: str,
    correct_answer: str,
    correct_option: str,
    user_answer: str,
    user_option: str,
) -> str:
    prompt = WRONG_ANSWER_EXPLANATION_PROMPT.format(
        question=question,
        correct_answer=correct_answer,
        correct_option=correct_option.upper(),
        user_answer=user_answer,
        user_option=user_option.upper(),
    )
    return gemini.get_client().generate_text(
        prompt,
        temperature=0.7,
        max_output_tokens=512,
        model=getattr(settings, "GEMINI_EXPLAIN_MODEL_NAME", None),
    )
