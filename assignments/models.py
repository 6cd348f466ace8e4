from django.conf import settings
from django.db import models
from django.utils import timezone


class Assignment(models.Model):
    """Binding of one student to one topic under one supervisor.

    A student holds at most one Active assignment. The rule lives in the
    database as a partial unique index, so two concurrent approvals for the
    same student cannot both commit: the second insert raises
    ``IntegrityError``.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        CHANGED = "changed", "Changed"

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="assignments"
    )
    topic = models.ForeignKey(
        "topics.Topic", on_delete=models.PROTECT, related_name="assignments"
    )
    supervisor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="supervised_assignments",
    )
    status = models.CharField(max_length=10, choices=Status, default=Status.ACTIVE)
    assigned_at = models.DateTimeField(default=timezone.now, editable=False)
    replaced_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replaces",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-assigned_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student"],
                condition=models.Q(status="active"),
                name="assignment_one_active_per_student",
            ),
        ]
        indexes = [
            models.Index(fields=["supervisor", "status"], name="assignment_supervisor_st_idx"),
            models.Index(fields=["topic", "status"], name="assignment_topic_st_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"Assignment {self.pk} ({self.student_id} → {self.topic_id}, {self.status})"
