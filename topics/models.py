from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from accounts.models import Profile

MAX_KEYWORDS = 10


def validate_keywords(value) -> None:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError("Keywords must be a list of strings.")
    if len(value) > MAX_KEYWORDS:
        raise ValidationError(f"At most {MAX_KEYWORDS} keywords are allowed.")


def validate_reference_documents(value) -> None:
    if not isinstance(value, list):
        raise ValidationError("Reference documents must be a list.")
    for item in value:
        if not isinstance(item, dict) or not item.get("name") or not item.get("url"):
            raise ValidationError("Each reference document needs a name and a url.")


class Topic(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        ACTIVE = "active", "Active"
        ARCHIVED = "archived", "Archived"

    Concentration = Profile.Concentration

    title = models.CharField(max_length=255, validators=[MinLengthValidator(5)])
    description = models.TextField(
        validators=[MinLengthValidator(50), MaxLengthValidator(5000)]
    )
    supervisor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="topics"
    )
    concentration = models.CharField(max_length=32, choices=Concentration)
    academic_year = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(6)],
    )
    keywords = models.JSONField(default=list, blank=True, validators=[validate_keywords])
    reference_documents = models.JSONField(
        default=list, blank=True, validators=[validate_reference_documents]
    )
    status = models.CharField(max_length=16, choices=Status, default=Status.DRAFT)
    application_deadline = models.DateTimeField(null=True, blank=True)
    max_applications = models.PositiveIntegerField(
        default=5, validators=[MinValueValidator(1)]
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    archived_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["supervisor", "status"], name="topics_supervisor_status_idx"),
            models.Index(fields=["concentration", "academic_year"], name="topics_conc_year_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return self.title


class TopicFlag(models.Model):
    """Admin moderation note raised against a topic until cleared."""

    topic = models.ForeignKey(Topic, on_delete=models.CASCADE, related_name="flags")
    reason = models.CharField(max_length=1000)
    flagged_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="topic_flags"
    )
    flagged_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-flagged_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"Flag on {self.topic_id}: {self.reason[:40]}"
