import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

DEFAULT_QUESTION = "Question will be extracted from uploaded files"


class EvaluationQuerySet(models.QuerySet):
    def transition(self, evaluation_id, to_status: str, **fields) -> bool:
        """Move a pending evaluation to a terminal status.

        The update is conditional on ``status='pending'`` so terminal states are
        never overwritten; returns False when nothing was updated.
        """
        if to_status not in MainsEvaluation.TERMINAL_STATUSES:
            raise ValueError(f"Not a terminal status: {to_status}")
        updated = self.filter(pk=evaluation_id, status=MainsEvaluation.Status.PENDING).update(
            status=to_status, updated_at=timezone.now(), **fields
        )
        return updated == 1


class MainsEvaluation(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending"
        COMPLETED = "completed"
        FAILED = "failed"

    TERMINAL_STATUSES = (Status.COMPLETED, Status.FAILED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="mains_evaluations")
    question = models.TextField(default=DEFAULT_QUESTION)
    answer_text = models.TextField(null=True, blank=True)
    answer_files = models.JSONField(default=list)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    evaluation_result = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EvaluationQuerySet.as_manager()

    class Meta:
        db_table = "mains_evaluations"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user", "-created_at"], name="mains_eval_user_created_idx")]

    def __str__(self) -> str:
        return f"Evaluation {self.id} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def mark_completed(self, result, question=None) -> bool:
        fields = {"evaluation_result": result}
        if question:
            fields["question"] = question
        done = MainsEvaluation.objects.transition(self.pk, self.Status.COMPLETED, **fields)
        if done:
            self.refresh_from_db()
        return done

    def mark_failed(self) -> bool:
        done = MainsEvaluation.objects.transition(self.pk, self.Status.FAILED)
        if done:
            self.refresh_from_db()
        return done


class MentorGuidance(models.Model):
    evaluation = models.ForeignKey(MainsEvaluation, on_delete=models.CASCADE, related_name="mentor_guidance")
    action_item_index = models.PositiveIntegerField()
    action_item_text = models.TextField()
    mentor_response = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "mains_mentor_guidance"
        ordering = ["action_item_index"]
        constraints = [
            models.UniqueConstraint(fields=["evaluation", "action_item_index"], name="uniq_mentor_guidance_item"),
        ]

    def __str__(self) -> str:
        return f"Guidance {self.evaluation_id}#{self.action_item_index}"
