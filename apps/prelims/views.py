import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.exceptions import Conflict
from apps.common.notes import get_or_create_note
from apps.common.ratelimit import RateLimitMixin
from apps.common.validation import validate_payload
from .generation import explain_wrong_answer, generate_questions, grade_answers
from .models import PersonalizedExplanation, PracticeSession
from .serializers import (
    ExplainWrongAnswerSerializer,
    GenerateQuestionsSerializer,
    PracticeSessionDetailSerializer,
    PracticeSessionSerializer,
    SubmitAnswersSerializer,
)

logger = logging.getLogger(__name__)


class GenerateQuestionsView(RateLimitMixin, APIView):
    rate_limit_scope = "generate_questions"

    def post(self, request):
        data = validate_payload(GenerateQuestionsSerializer, request.data)
        questions = generate_questions(data["topic"], data["numQuestions"], data["difficulty"])

        session = PracticeSession.objects.create(
            user=request.user,
            topic=data["topic"],
            difficulty=data["difficulty"],
            questions=questions,
        )
        logger.info("session %s created user=%s questions=%d", session.pk, request.user.pk, len(questions))
        return Response(
            {"success": True, "sessionId": str(session.pk), "questions": questions},
            status=status.HTTP_201_CREATED,
        )


class ExplainWrongAnswerView(RateLimitMixin, APIView):
    rate_limit_scope = "explain_answer"

    def post(self, request):
        data = validate_payload(ExplainWrongAnswerSerializer, request.data)
        session = PracticeSession.objects.filter(pk=data["sessionId"], user=request.user).first()
        if session is None:
            return Response({"error": "Session not found"}, status=status.HTTP_404_NOT_FOUND)

        text, cached = get_or_create_note(
            PersonalizedExplanation,
            {"session": session, "question_index": data["questionIndex"]},
            "explanation",
            lambda: explain_wrong_answer(
                data["question"],
                data["correctAnswer"],
                data["correctOption"],
                data["userAnswer"],
                data["userOption"],
            ),
        )
        return Response({"success": True, "explanation": text, "cached": cached})


class SessionViewSet(
    RateLimitMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = PracticeSessionSerializer

    def get_queryset(self):
        qs = PracticeSession.objects.filter(user=self.request.user).order_by("-created_at")
        if self.action == "retrieve":
            qs = qs.prefetch_related("explanations")
        return qs

    def get_serializer_class(self):
        if self.action == "retrieve":
            return PracticeSessionDetailSerializer
        return PracticeSessionSerializer

    @action(detail=True, methods=["post"], url_path="submit")
    def submit(self, request, pk=None):
        session = self.get_object()
        if session.is_graded:
            raise Conflict("Session already graded")

        data = validate_payload(
            SubmitAnswersSerializer, request.data, context={"question_count": session.total_questions}
        )
        answers = data["answers"]
        score = grade_answers(session.questions, answers)

        # the score IS NULL guard keeps the first submission when two race
        updated = PracticeSession.objects.filter(pk=session.pk, score__isnull=True).update(
            user_answers=answers, score=score
        )
        if not updated:
            raise Conflict("Session already graded")

        session.refresh_from_db()
        return Response(PracticeSessionSerializer(session).data)
