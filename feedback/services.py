"""Supervisor feedback on phase submissions.

Only the supervisor holding the student's Active assignment may add feedback;
only its author may change or remove it. Students read the public feedback on
their own submissions.
"""
from __future__ import annotations

from typing import Any, Mapping

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Avg, Count, Max, Min
from rest_framework import exceptions

from accounts.models import Profile, role_of
from activity.models import ActivityLog
from activity.services import ActivityRecorder
from assignments.models import Assignment
from submissions.models import Submission

from .models import Feedback

ENTITY_TYPE = "Feedback"

EDITABLE_FIELDS = ("text", "rating", "is_private")


def _get_submission(submission_id: int, using: str) -> Submission:
    submission = Submission.objects.using(using).filter(pk=submission_id).first()
    if submission is None:
        raise exceptions.NotFound("Submission not found.")
    return submission


def _supervises(supervisor, submission: Submission, using: str) -> bool:
    return (
        Assignment.objects.using(using)
        .filter(
            student_id=submission.student_id,
            supervisor=supervisor,
            status=Assignment.Status.ACTIVE,
        )
        .exists()
    )


def _visible_feedback(user, submission_id: int, using: str):
    submission = _get_submission(submission_id, using)
    qs = Feedback.objects.using(using).filter(submission=submission)
    role = role_of(user)
    if role == Profile.Role.ADMIN:
        return qs
    if role == Profile.Role.SUPERVISOR:
        if not _supervises(user, submission, using):
            raise exceptions.PermissionDenied("You are not assigned to this student.")
        return qs
    if submission.student_id != user.pk:
        raise exceptions.PermissionDenied("You do not have access to this submission.")
    return qs.filter(is_private=False)


def feedback_for(user, submission_id: int, using: str = DEFAULT_DB_ALIAS):
    """Feedback on a submission as ``user`` may see it, newest first."""

    return (
        _visible_feedback(user, submission_id, using)
        .select_related("supervisor", "supervisor__profile")
        .order_by("-created_at", "-id")
    )


def feedback_stats(user, submission_id: int, using: str = DEFAULT_DB_ALIAS) -> dict:
    """Rating summary over the public feedback only."""

    return (
        _visible_feedback(user, submission_id, using)
        .filter(is_private=False)
        .aggregate(
            count=Count("id"),
            avg_rating=Avg("rating"),
            min_rating=Min("rating"),
            max_rating=Max("rating"),
        )
    )


def add_feedback(
    supervisor,
    submission_id: int,
    data: Mapping[str, Any],
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Feedback:
    recorder = recorder or ActivityRecorder(using=using)
    submission = _get_submission(submission_id, using)
    if not _supervises(supervisor, submission, using):
        raise exceptions.PermissionDenied("You are not assigned to this student.")

    feedback = Feedback(
        submission=submission,
        supervisor=supervisor,
        **{name: data[name] for name in EDITABLE_FIELDS if name in data},
    )
    feedback.save(using=using)
    recorder.record(
        supervisor,
        ActivityLog.Action.FEEDBACK_ADDED,
        ENTITY_TYPE,
        feedback.pk,
        details={
            "submission_id": submission.pk,
            "is_private": feedback.is_private,
            "has_rating": feedback.rating is not None,
        },
    )
    return feedback


def _owned_feedback(supervisor, feedback_id: int, using: str, action: str) -> Feedback:
    feedback = Feedback.objects.using(using).select_for_update().filter(pk=feedback_id).first()
    if feedback is None:
        raise exceptions.NotFound("Feedback not found.")
    if feedback.supervisor_id != supervisor.pk:
        raise exceptions.PermissionDenied(f"You can only {action} your own feedback.")
    return feedback


def update_feedback(
    supervisor,
    feedback_id: int,
    data: Mapping[str, Any],
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Feedback:
    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        feedback = _owned_feedback(supervisor, feedback_id, using, "update")
        changed = [name for name in EDITABLE_FIELDS if name in data]
        for name in changed:
            setattr(feedback, name, data[name])
        feedback.save(using=using)
    recorder.record(
        supervisor,
        ActivityLog.Action.FEEDBACK_UPDATED,
        ENTITY_TYPE,
        feedback.pk,
        details={"submission_id": feedback.submission_id, "fields": changed},
    )
    return feedback


def delete_feedback(
    supervisor,
    feedback_id: int,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> None:
    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        feedback = _owned_feedback(supervisor, feedback_id, using, "delete")
        submission_id = feedback.submission_id
        feedback.delete(using=using)
    recorder.record(
        supervisor,
        ActivityLog.Action.FEEDBACK_DELETED,
        ENTITY_TYPE,
        feedback_id,
        details={"submission_id": submission_id},
    )
