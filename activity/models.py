"""Append-only audit trail of state-changing actions."""

from django.conf import settings
from django.db import models
from django.utils import timezone


class ImmutableLogError(Exception):
    """Raised on any attempt to change or remove an activity log entry."""


class ActivityLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableLogError("Activity log entries cannot be updated")

    def delete(self):
        raise ImmutableLogError("Activity log entries cannot be deleted")


class ActivityLog(models.Model):
    class Action(models.TextChoices):
        LOGIN = "login", "Login"
        TOPIC_CREATED = "topic_created", "Topic created"
        TOPIC_UPDATED = "topic_updated", "Topic updated"
        TOPIC_PUBLISHED = "topic_published", "Topic published"
        TOPIC_ARCHIVED = "topic_archived", "Topic archived"
        TOPIC_DELETED = "topic_deleted", "Topic deleted"
        TOPIC_FLAGGED = "topic_flagged", "Topic flagged"
        TOPIC_FLAGS_CLEARED = "topic_flags_cleared", "Topic flags cleared"
        APPLICATION_SUBMITTED = "application_submitted", "Application submitted"
        APPLICATION_WITHDRAWN = "application_withdrawn", "Application withdrawn"
        APPLICATION_APPROVED = "application_approved", "Application approved"
        APPLICATION_REJECTED = "application_rejected", "Application rejected"
        ASSIGNMENT_CREATED = "assignment_created", "Assignment created"
        ASSIGNMENT_COMPLETED = "assignment_completed", "Assignment completed"
        ASSIGNMENT_CHANGED = "assignment_changed", "Assignment changed"
        DOCUMENT_SUBMITTED = "document_submitted", "Document submitted"
        SUBMISSION_DECLARED = "submission_declared_not_needed", "Submission declared not needed"
        REMINDER_SENT = "reminder_sent", "Reminder sent"
        FEEDBACK_ADDED = "feedback_added", "Feedback added"
        FEEDBACK_UPDATED = "feedback_updated", "Feedback updated"
        FEEDBACK_DELETED = "feedback_deleted", "Feedback deleted"
        USER_DEACTIVATED = "user_deactivated", "User deactivated"
        USER_REACTIVATED = "user_reactivated", "User reactivated"

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="activity_logs",
    )
    action = models.CharField(max_length=100, choices=Action)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=64, blank=True)
    details = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(default=timezone.now, editable=False)
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    objects = ActivityLogQuerySet.as_manager()

    class Meta:
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["actor", "timestamp"], name="activity_actor_ts_idx"),
            models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
            models.Index(fields=["action", "timestamp"], name="activity_action_ts_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.action} {self.entity_type}#{self.entity_id} by {self.actor_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableLogError("Activity log entries cannot be updated")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableLogError("Activity log entries cannot be deleted")
