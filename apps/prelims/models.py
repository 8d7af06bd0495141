import uuid

from django.conf import settings
from django.db import models

MAX_QUESTIONS = 5
OPTION_KEYS = ("a", "b", "c", "d")


class PracticeSession(models.Model):
    class Difficulty(models.TextChoices):
        CONCEPTUAL = "conceptual"
        APPLICATION = "application"
        UPSC_LEVEL = "upsc_level"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="prelims_sessions")
    topic = models.CharField(max_length=200)
    difficulty = models.CharField(max_length=16, choices=Difficulty.choices)
    # list of {question, options{a..d}, correct_answer, explanation}; fixed at creation
    questions = models.JSONField(default=list)
    user_answers = models.JSONField(null=True, blank=True)
    score = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "prelims_sessions"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user", "-created_at"], name="prelims_sess_user_created_idx")]

    def __str__(self) -> str:
        return f"Session {self.id} ({self.topic})"

    @property
    def is_graded(self) -> bool:
        return self.score is not None and self.user_answers is not None

    @property
    def total_questions(self) -> int:
        return len(self.questions or [])


class PersonalizedExplanation(models.Model):
    session = models.ForeignKey(PracticeSession, on_delete=models.CASCADE, related_name="explanations")
    question_index = models.PositiveIntegerField()
    explanation = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "prelims_personalized_explanations"
        ordering = ["question_index"]
        constraints = [
            models.UniqueConstraint(fields=["session", "question_index"], name="uniq_personalized_explanation"),
        ]

    def __str__(self) -> str:
        return f"Explanation {self.session_id}#{self.question_index}"
