from django.conf import settings
from django.db import models
from django.utils import timezone


class Submission(models.Model):
    """One deliverable phase of a student's project."""

    class Phase(models.TextChoices):
        INITIAL_STATEMENT = "initial_statement", "Initial Statement"
        PROGRESS_REPORT_1 = "progress_report_1", "Progress Report 1"
        PROGRESS_REPORT_2 = "progress_report_2", "Progress Report 2"
        FINAL_DISSERTATION = "final_dissertation", "Final Dissertation"

    class Status(models.TextChoices):
        NOT_SUBMITTED = "not_submitted", "Not Submitted"
        SUBMITTED = "submitted", "Submitted"
        OVERDUE = "overdue", "Overdue"
        DECLARED_NOT_NEEDED = "declared_not_needed", "Declared Not Needed"

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="submissions"
    )
    topic = models.ForeignKey(
        "topics.Topic", on_delete=models.PROTECT, related_name="submissions"
    )
    phase = models.CharField(max_length=32, choices=Phase)
    status = models.CharField(max_length=32, choices=Status, default=Status.NOT_SUBMITTED)
    due_date = models.DateTimeField()
    submitted_at = models.DateTimeField(null=True, blank=True)
    document_url = models.URLField(max_length=500, blank=True)
    declaration_reason = models.CharField(max_length=1000, blank=True)
    declared_at = models.DateTimeField(null=True, blank=True)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "phase"], name="submission_unique_student_phase"
            ),
        ]
        indexes = [
            models.Index(fields=["student", "status"], name="submission_student_st_idx"),
            models.Index(fields=["due_date", "status"], name="submission_due_st_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.get_phase_display()} for {self.student_id} ({self.status})"

    def mark_overdue_if_late(self, now=None) -> bool:
        now = now or timezone.now()
        if self.status == self.Status.NOT_SUBMITTED and self.due_date and self.due_date < now:
            self.status = self.Status.OVERDUE
            return True
        return False

    def save(self, *args, **kwargs):
        if self.mark_overdue_if_late() and kwargs.get("update_fields") is not None:
            kwargs["update_fields"] = {*kwargs["update_fields"], "status"}
        super().save(*args, **kwargs)
