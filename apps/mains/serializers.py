from rest_framework import serializers

from .models import MainsEvaluation, MentorGuidance


class EvaluateAnswerSerializer(serializers.Serializer):
    question = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=2000,
        error_messages={"max_length": "Question text too long"},
    )
    answerText = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=5000,
        error_messages={"max_length": "Answer text too long"},
    )
    answerFiles = serializers.ListField(
        child=serializers.URLField(error_messages={"invalid": "Invalid file URL"}),
        min_length=1,
        max_length=10,
        error_messages={
            "required": "Please upload at least one image or PDF file",
            "min_length": "At least one answer file is required",
            "max_length": "Maximum 10 files allowed",
        },
    )


class MentorGuidanceRequestSerializer(serializers.Serializer):
    evaluationId = serializers.UUIDField(error_messages={"invalid": "Invalid evaluation ID"})
    actionItemIndex = serializers.IntegerField(
        min_value=0,
        error_messages={"invalid": "Action item index must be an integer", "min_value": "Invalid action item index"},
    )
    actionItemText = serializers.CharField(
        min_length=10,
        max_length=1000,
        error_messages={"min_length": "Action item text too short", "max_length": "Action item text too long"},
    )


class EvaluationResultSerializer(serializers.Serializer):
    """Shape the model's evaluation JSON must have before it is stored."""

    score = serializers.FloatField(min_value=0)
    extracted_question = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    marks_allocated = serializers.FloatField(required=False, allow_null=True, min_value=0)
    word_limit = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    actual_word_count = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    structure = serializers.CharField()
    content_quality = serializers.CharField()
    presentation = serializers.CharField()
    adherence_to_word_limit = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    key_strengths = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    key_weaknesses = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    suggestions = serializers.ListField(child=serializers.CharField())

    def validate(self, attrs):
        marks = attrs.get("marks_allocated")
        if marks is not None and attrs["score"] > marks:
            raise serializers.ValidationError({"score": "Score exceeds marks allocated"})
        return attrs


class MentorGuidanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = MentorGuidance
        fields = ["action_item_index", "action_item_text", "mentor_response", "created_at"]
        read_only_fields = fields


class MainsEvaluationSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = MainsEvaluation
        fields = [
            "id",
            "user_id",
            "question",
            "answer_text",
            "answer_files",
            "status",
            "evaluation_result",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MainsEvaluationDetailSerializer(MainsEvaluationSerializer):
    mentor_guidance = MentorGuidanceSerializer(many=True, read_only=True)

    class Meta(MainsEvaluationSerializer.Meta):
        fields = MainsEvaluationSerializer.Meta.fields + ["mentor_guidance"]
        read_only_fields = fields


class EvaluationSummarySerializer(serializers.ModelSerializer):
    score = serializers.SerializerMethodField()

    class Meta:
        model = MainsEvaluation
        fields = ["id", "question", "status", "score", "created_at"]
        read_only_fields = fields

    def get_score(self, obj):
        return (obj.evaluation_result or {}).get("score")
