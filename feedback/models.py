from django.conf import settings
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models


class Feedback(models.Model):
    """Supervisor comments on one phase submission.

    Private feedback is only shown to supervisors and admins.
    """

    submission = models.ForeignKey(
        "submissions.Submission", on_delete=models.CASCADE, related_name="feedback"
    )
    supervisor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="feedback_given"
    )
    text = models.TextField(validators=[MinLengthValidator(10), MaxLengthValidator(5000)])
    rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    is_private = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["submission", "is_private"], name="feedback_sub_private_idx"),
            models.Index(fields=["supervisor", "-created_at"], name="feedback_sup_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"Feedback {self.pk} on submission {self.submission_id}"
