"""Reads and lifecycle operations for assignments created by approvals."""
from __future__ import annotations

import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from rest_framework import exceptions

from accounts.models import Profile, role_of
from activity.models import ActivityLog
from activity.services import ActivityRecorder, Entry
from fypportal.errors import Conflict, InvalidState
from submissions.services import schedule_phases
from topics.models import Topic

from .models import Assignment

logger = logging.getLogger(__name__)

ENTITY_TYPE = "Assignment"


def _base_queryset(using: str = DEFAULT_DB_ALIAS):
    return Assignment.objects.using(using).select_related(
        "student", "student__profile", "topic", "supervisor", "supervisor__profile"
    )


def get_active_assignment(student, using: str = DEFAULT_DB_ALIAS) -> Assignment:
    assignment = (
        _base_queryset(using)
        .filter(student=student, status=Assignment.Status.ACTIVE)
        .first()
    )
    if assignment is None:
        raise exceptions.NotFound("You do not have an active assignment.")
    return assignment


def supervisor_assignments(supervisor, *, status: str | None = None, using: str = DEFAULT_DB_ALIAS):
    qs = _base_queryset(using).filter(supervisor=supervisor)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-assigned_at", "-id")


def get_assignment_for(user, assignment_id: int, using: str = DEFAULT_DB_ALIAS) -> Assignment:
    assignment = _base_queryset(using).filter(pk=assignment_id).first()
    if assignment is None:
        raise exceptions.NotFound("Assignment not found.")
    if role_of(user) == Profile.Role.ADMIN:
        return assignment
    if user.pk not in (assignment.student_id, assignment.supervisor_id):
        raise exceptions.PermissionDenied("You cannot view this assignment.")
    return assignment


def complete_assignment(
    supervisor,
    assignment_id: int,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Assignment:
    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        assignment = (
            Assignment.objects.using(using)
            .select_for_update()
            .filter(pk=assignment_id)
            .first()
        )
        if assignment is None:
            raise exceptions.NotFound("Assignment not found.")
        if assignment.supervisor_id != supervisor.pk:
            raise exceptions.PermissionDenied(
                "You can only complete assignments for your own topics."
            )
        if assignment.status != Assignment.Status.ACTIVE:
            raise InvalidState("Can only complete active assignments.")
        assignment.status = Assignment.Status.COMPLETED
        assignment.save(using=using, update_fields=["status", "updated_at"])

    recorder.record(
        supervisor,
        ActivityLog.Action.ASSIGNMENT_COMPLETED,
        ENTITY_TYPE,
        assignment.pk,
        details={"student_id": assignment.student_id, "topic_id": assignment.topic_id},
    )
    return assignment


def reassign(
    admin,
    assignment_id: int,
    topic_id: int,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Assignment:
    """Move a student's Active assignment to another Active topic.

    The current assignment becomes Changed and points at its replacement.
    Open phase submissions follow the student to the new topic with fresh
    deadlines. Returns the new Active assignment.
    """

    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        current = (
            Assignment.objects.using(using)
            .select_for_update()
            .filter(pk=assignment_id)
            .first()
        )
        if current is None:
            raise exceptions.NotFound("Assignment not found.")
        if current.status != Assignment.Status.ACTIVE:
            raise InvalidState("Only active assignments can be reassigned.")
        topic = Topic.objects.using(using).filter(pk=topic_id).first()
        if topic is None:
            raise exceptions.NotFound("Topic not found.")
        if topic.status != Topic.Status.ACTIVE:
            raise InvalidState("Topic is not accepting assignments.")
        if topic.pk == current.topic_id:
            raise InvalidState("Student is already assigned to this topic.")

        current.status = Assignment.Status.CHANGED
        current.save(using=using, update_fields=["status", "updated_at"])
        try:
            with transaction.atomic(using=using):
                replacement = Assignment(
                    student_id=current.student_id,
                    topic=topic,
                    supervisor_id=topic.supervisor_id,
                    status=Assignment.Status.ACTIVE,
                )
                replacement.save(using=using)
        except IntegrityError as exc:
            raise Conflict("Student already has an active assignment.") from exc
        current.replaced_by = replacement
        current.save(using=using, update_fields=["replaced_by", "updated_at"])
        schedule_phases(replacement, using=using)

    recorder.record_many(
        admin,
        [
            Entry(
                ActivityLog.Action.ASSIGNMENT_CHANGED,
                ENTITY_TYPE,
                current.pk,
                {"replaced_by": replacement.pk, "previous_topic_id": current.topic_id},
            ),
            Entry(
                ActivityLog.Action.ASSIGNMENT_CREATED,
                ENTITY_TYPE,
                replacement.pk,
                {"student_id": replacement.student_id, "topic_id": topic.pk},
            ),
        ],
    )
    logger.info(
        "Assignment %s replaced by %s (topic %s)", current.pk, replacement.pk, topic.pk
    )
    return replacement
