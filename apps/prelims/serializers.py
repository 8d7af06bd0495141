from django.core.validators import RegexValidator
from rest_framework import serializers

from .models import MAX_QUESTIONS, OPTION_KEYS, PersonalizedExplanation, PracticeSession

option_validator = RegexValidator(r"^[a-dA-D]$", "Invalid option format")


class GenerateQuestionsSerializer(serializers.Serializer):
    topic = serializers.CharField(
        min_length=3,
        max_length=200,
        error_messages={
            "min_length": "Topic must be at least 3 characters",
            "max_length": "Topic must not exceed 200 characters",
        },
        validators=[RegexValidator(r"^[a-zA-Z0-9\s,.-]+$", "Topic contains invalid characters")],
    )
    numQuestions = serializers.IntegerField(
        min_value=1,
        max_value=MAX_QUESTIONS,
        error_messages={
            "invalid": "Number of questions must be an integer",
            "min_value": "Must generate at least 1 question",
            "max_value": f"Cannot generate more than {MAX_QUESTIONS} questions",
        },
    )
    difficulty = serializers.ChoiceField(choices=PracticeSession.Difficulty.choices)


class ExplainWrongAnswerSerializer(serializers.Serializer):
    sessionId = serializers.UUIDField(error_messages={"invalid": "Invalid session ID"})
    questionIndex = serializers.IntegerField(
        min_value=0,
        error_messages={"invalid": "Question index must be an integer", "min_value": "Invalid question index"},
    )
    question = serializers.CharField(
        min_length=10,
        max_length=2000,
        error_messages={"min_length": "Question text too short", "max_length": "Question text too long"},
    )
    correctAnswer = serializers.CharField(
        max_length=1000,
        error_messages={"blank": "Correct answer required", "max_length": "Answer text too long"},
    )
    userAnswer = serializers.CharField(
        max_length=1000,
        error_messages={"blank": "User answer required", "max_length": "Answer text too long"},
    )
    correctOption = serializers.CharField(validators=[option_validator])
    userOption = serializers.CharField(validators=[option_validator])


class QuestionSerializer(serializers.Serializer):
    """One generated multiple-choice question."""

    question = serializers.CharField()
    options = serializers.DictField(child=serializers.CharField())
    correct_answer = serializers.CharField()
    explanation = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_options(self, value):
        if sorted(value) != list(OPTION_KEYS):
            raise serializers.ValidationError("Options must be exactly a, b, c and d")
        return value

    def validate_correct_answer(self, value):
        value = value.strip().lower()
        if value not in OPTION_KEYS:
            raise serializers.ValidationError("Correct answer must be one of a, b, c or d")
        return value


class GeneratedQuestionsSerializer(serializers.Serializer):
    questions = QuestionSerializer(many=True, allow_empty=False)

    def validate_questions(self, value):
        if len(value) > MAX_QUESTIONS:
            raise serializers.ValidationError(f"Expected at most {MAX_QUESTIONS} questions, got {len(value)}")
        return value


class SubmitAnswersSerializer(serializers.Serializer):
    """``answers`` maps a question index to the chosen option.

    Expects the session's question count as ``question_count`` in the context.
    """

    answers = serializers.DictField(child=serializers.CharField(validators=[option_validator]))

    def validate_answers(self, value):
        count = self.context.get("question_count", 0)
        normalized = {}
        for key, option in value.items():
            try:
                index = int(key)
            except (TypeError, ValueError):
                raise serializers.ValidationError(f"Invalid question index: {key}")
            if not 0 <= index < count:
                raise serializers.ValidationError(f"Question index out of range: {key}")
            normalized[str(index)] = option.lower()
        return normalized


class PersonalizedExplanationSerializer(serializers.ModelSerializer):
    class Meta:
        model = PersonalizedExplanation
        fields = ["question_index", "explanation", "created_at"]
        read_only_fields = fields


class PracticeSessionSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    total_questions = serializers.IntegerField(read_only=True)

    class Meta:
        model = PracticeSession
        fields = [
            "id",
            "user_id",
            "topic",
            "difficulty",
            "questions",
            "user_answers",
            "score",
            "total_questions",
            "created_at",
        ]
        read_only_fields = fields


class PracticeSessionDetailSerializer(PracticeSessionSerializer):
    explanations = PersonalizedExplanationSerializer(many=True, read_only=True)

    class Meta(PracticeSessionSerializer.Meta):
        fields = PracticeSessionSerializer.Meta.fields + ["explanations"]
        read_only_fields = fields


class SessionSummarySerializer(serializers.ModelSerializer):
    total_questions = serializers.IntegerField(read_only=True)

    class Meta:
        model = PracticeSession
        fields = ["id", "topic", "difficulty", "score", "total_questions", "created_at"]
        read_only_fields = fields
