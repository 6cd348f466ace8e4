from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

MIN_RANK = 1
MAX_RANK = 5


class Application(models.Model):
    """A student's ranked bid for one topic."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="topic_applications",
    )
    topic = models.ForeignKey(
        "topics.Topic", on_delete=models.CASCADE, related_name="applications"
    )
    preference_rank = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_RANK), MaxValueValidator(MAX_RANK)]
    )
    status = models.CharField(max_length=10, choices=Status, default=Status.PENDING)
    supervisor_notes = models.CharField(max_length=1000, blank=True)
    applied_at = models.DateTimeField(auto_now_add=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-applied_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "topic"], name="application_unique_student_topic"
            ),
            models.CheckConstraint(
                condition=models.Q(preference_rank__gte=MIN_RANK)
                & models.Q(preference_rank__lte=MAX_RANK),
                name="application_rank_range",
            ),
        ]
        indexes = [
            models.Index(fields=["student", "status"], name="application_student_st_idx"),
            models.Index(fields=["topic", "status"], name="application_topic_st_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"Application {self.pk} ({self.student_id} → {self.topic_id})"
