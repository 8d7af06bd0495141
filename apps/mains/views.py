import logging

from rest_framework import mixins, status, viewsets
from rest_framework.exceptions import ParseError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.ai import gemini
from apps.ai.prompts import MENTOR_GUIDANCE_PROMPT
from apps.common.files import ingest_uploads
from apps.common.notes import get_or_create_note
from apps.common.ratelimit import RateLimitMixin
from apps.common.validation import validate_payload
from .dispatch import dispatch_evaluation
from .models import DEFAULT_QUESTION, MainsEvaluation, MentorGuidance
from .serializers import (
    EvaluateAnswerSerializer,
    MainsEvaluationDetailSerializer,
    MainsEvaluationSerializer,
    MentorGuidanceRequestSerializer,
)

logger = logging.getLogger(__name__)


class EvaluateAnswerView(RateLimitMixin, APIView):
    rate_limit_scope = "evaluate_answer"

    def post(self, request):
        data = validate_payload(EvaluateAnswerSerializer, request.data)
        question = (data.get("question") or "").strip()
        answer_text = (data.get("answerText") or "").strip()

        evaluation = MainsEvaluation.objects.create(
            user=request.user,
            question=question or DEFAULT_QUESTION,
            answer_text=answer_text or None,
            answer_files=data["answerFiles"],
        )

        try:
            dispatch_evaluation(
                evaluation,
                provided_question=question or None,
                provided_answer_text=answer_text or None,
            )
        except Exception:
            logger.exception("Failed to dispatch evaluation %s", evaluation.pk)
            try:
                evaluation.mark_failed()
            except Exception:
                logger.exception("Failed to mark evaluation %s as failed after dispatch error", evaluation.pk)
            evaluation.refresh_from_db()

        return Response(
            {
                "success": True,
                "evaluation": MainsEvaluationSerializer(evaluation).data,
                "message": "Evaluation started. Results will be available shortly.",
            },
            status=status.HTTP_201_CREATED,
        )


class MentorGuidanceView(RateLimitMixin, APIView):
    rate_limit_scope = "explain_answer"

    def post(self, request):
        data = validate_payload(MentorGuidanceRequestSerializer, request.data)
        evaluation = MainsEvaluation.objects.filter(pk=data["evaluationId"], user=request.user).first()
        if evaluation is None:
            return Response({"error": "Evaluation not found"}, status=status.HTTP_404_NOT_FOUND)

        action_item = data["actionItemText"].strip()

        def generate():
            client = gemini.get_client()
            return client.generate_text(
                MENTOR_GUIDANCE_PROMPT.format(action_item=action_item),
                temperature=0.7,
                max_output_tokens=1024,
            )

        text, cached = get_or_create_note(
            MentorGuidance,
            {"evaluation": evaluation, "action_item_index": data["actionItemIndex"]},
            "mentor_response",
            generate,
            extra={"action_item_text": action_item},
        )
        return Response({"success": True, "mentorResponse": text, "cached": cached})


class UploadView(RateLimitMixin, APIView):
    rate_limit_scope = "upload"
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        if not (request.content_type or "").startswith("multipart/form-data"):
            raise ParseError("Invalid content type. Expected multipart/form-data")
        files = request.FILES.getlist("files")
        if not files:
            return Response({"error": "No files provided"}, status=status.HTTP_400_BAD_REQUEST)

        result = ingest_uploads(files, request.user.pk, request.build_absolute_uri)
        if not result.urls:
            return Response(
                {"error": "Failed to upload any files", "details": result.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        body = {"success": True, "urls": result.urls}
        if result.errors:
            body["errors"] = result.errors
        return Response(body)


class EvaluationViewSet(
    RateLimitMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = MainsEvaluationSerializer

    def get_queryset(self):
        qs = MainsEvaluation.objects.filter(user=self.request.user).order_by("-created_at")
        if self.action == "retrieve":
            qs = qs.prefetch_related("mentor_guidance")
        return qs

    def get_serializer_class(self):
        if self.action == "retrieve":
            return MainsEvaluationDetailSerializer
        return MainsEvaluationSerializer

