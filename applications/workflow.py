"""Application → assignment workflow.

:class:`ApplicationWorkflow` owns every state change of an application:

* ``apply``: a student bids for an Active topic (at most one bid per topic and
  a bounded number of Pending bids per student);
* ``withdraw``: the student removes a Pending bid;
* ``approve``: the topic's supervisor accepts a Pending bid, which creates the
  Active assignment, opens its phase submissions and rejects the student's
  other Pending bids;
* ``reject``: the supervisor declines a Pending bid.

Each operation runs inside one database transaction. The "one Active
assignment per student" rule is enforced by a partial unique index on
:class:`assignments.models.Assignment`; the precondition check in
``approve`` only produces a friendlier error for the common case and the index
decides the race between concurrent approvals.

Audit entries are written after the transaction body through
:class:`activity.services.ActivityRecorder`, whose failures never propagate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.utils import timezone
from rest_framework import exceptions

from activity.models import ActivityLog
from activity.services import ActivityRecorder, Entry
from assignments.models import Assignment
from fypportal.errors import Conflict, InvalidState, ResourceExhausted
from submissions.services import schedule_phases
from topics.models import Topic

from .models import MAX_RANK, MIN_RANK, Application

logger = logging.getLogger("applications")

ENTITY_TYPE = "Application"
AUTO_REJECT_NOTE = "Student assigned to another topic"
MAX_NOTES_LENGTH = 1000


@dataclass(frozen=True)
class ApprovalResult:
    application: Application
    assignment: Assignment
    auto_rejected: List[int] = field(default_factory=list)


def _validate_rank(preference_rank) -> int:
    if isinstance(preference_rank, bool) or not isinstance(preference_rank, int):
        raise exceptions.ValidationError(
            {"preference_rank": f"Must be an integer between {MIN_RANK} and {MAX_RANK}."}
        )
    if not MIN_RANK <= preference_rank <= MAX_RANK:
        raise exceptions.ValidationError(
            {"preference_rank": f"Must be an integer between {MIN_RANK} and {MAX_RANK}."}
        )
    return preference_rank


def _validate_notes(notes: str | None) -> str:
    notes = (notes or "").strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise exceptions.ValidationError(
            {"supervisor_notes": f"Ensure this field has no more than {MAX_NOTES_LENGTH} characters."}
        )
    return notes


class ApplicationWorkflow:
    """Application state transitions bound to one database alias."""

    def __init__(
        self,
        using: str = DEFAULT_DB_ALIAS,
        recorder: ActivityRecorder | None = None,
        max_pending: int | None = None,
    ):
        self.using = using
        self.recorder = recorder or ActivityRecorder(using=using)
        self.max_pending = (
            max_pending if max_pending is not None else settings.FYP_MAX_PENDING_APPLICATIONS
        )

    def _applications(self):
        return Application.objects.using(self.using)

    def _has_active_assignment(self, student_id: int) -> bool:
        return (
            Assignment.objects.using(self.using)
            .filter(student_id=student_id, status=Assignment.Status.ACTIVE)
            .exists()
        )

    def _lock_student(self, student) -> None:
        # Serialises concurrent applies of one student so the Pending count
        # check below sees committed rows.
        list(
            get_user_model()
            .objects.using(self.using)
            .select_for_update()
            .filter(pk=student.pk)
            .values_list("pk", flat=True)
        )

    def _load_for_decision(self, supervisor, application_id: int, verb: str) -> Application:
        application = (
            self._applications()
            .select_for_update()
            .select_related("topic")
            .filter(pk=application_id)
            .first()
        )
        if application is None:
            raise exceptions.NotFound("Application not found.")
        if application.topic.supervisor_id != supervisor.pk:
            raise exceptions.PermissionDenied(
                f"You can only {verb} applications for your own topics."
            )
        if application.status != Application.Status.PENDING:
            raise InvalidState(f"Cannot {verb} a decided application.")
        return application

    def apply(self, student, topic_id: int, preference_rank) -> Application:
        preference_rank = _validate_rank(preference_rank)

        with transaction.atomic(using=self.using):
            self._lock_student(student)

            topic = Topic.objects.using(self.using).filter(pk=topic_id).first()
            if topic is None:
                raise exceptions.NotFound("Topic not found.")
            if topic.status != Topic.Status.ACTIVE:
                raise InvalidState("Topic is not accepting applications.")

            applications = self._applications().filter(student=student)
            if applications.filter(topic=topic).exists():
                raise Conflict("You have already applied to this topic.")
            pending = applications.filter(status=Application.Status.PENDING).count()
            if pending >= self.max_pending:
                raise ResourceExhausted(
                    f"Application limit exceeded: at most {self.max_pending} pending applications."
                )

            try:
                with transaction.atomic(using=self.using):
                    application = Application(
                        student=student,
                        topic=topic,
                        preference_rank=preference_rank,
                        status=Application.Status.PENDING,
                    )
                    application.save(using=self.using)
            except IntegrityError as exc:
                raise Conflict("You have already applied to this topic.") from exc

        self.recorder.record(
            student,
            ActivityLog.Action.APPLICATION_SUBMITTED,
            ENTITY_TYPE,
            application.pk,
            details={
                "topic_id": topic.pk,
                "status": application.status,
                "preference_rank": preference_rank,
            },
        )
        logger.info(
            "Student %s applied to topic %s (rank %s)", student.pk, topic.pk, preference_rank
        )
        return application

    def withdraw(self, student, application_id: int) -> None:
        with transaction.atomic(using=self.using):
            application = (
                self._applications().select_for_update().filter(pk=application_id).first()
            )
            if application is None:
                raise exceptions.NotFound("Application not found.")
            if application.student_id != student.pk:
                raise exceptions.PermissionDenied("You can only withdraw your own applications.")
            if application.status != Application.Status.PENDING:
                raise InvalidState("Only pending applications can be withdrawn.")
            topic_id = application.topic_id
            application.delete()

        self.recorder.record(
            student,
            ActivityLog.Action.APPLICATION_WITHDRAWN,
            ENTITY_TYPE,
            application_id,
            details={"topic_id": topic_id},
        )

    def approve(self, supervisor, application_id: int, notes: str | None = "") -> ApprovalResult:
        with transaction.atomic(using=self.using):
            application = self._load_for_decision(supervisor, application_id, "approve")
            notes = _validate_notes(notes)
            if self._has_active_assignment(application.student_id):
                raise Conflict("Student already has an active assignment.")

            now = timezone.now()
            try:
                with transaction.atomic(using=self.using):
                    assignment = Assignment(
                        student_id=application.student_id,
                        topic_id=application.topic_id,
                        supervisor=supervisor,
                        status=Assignment.Status.ACTIVE,
                        assigned_at=now,
                    )
                    assignment.save(using=self.using)
            except IntegrityError as exc:
                raise Conflict("Student already has an active assignment.") from exc
            schedule_phases(assignment, using=self.using)

            application.status = Application.Status.APPROVED
            application.decided_at = now
            application.supervisor_notes = notes
            application.save(
                using=self.using, update_fields=["status", "decided_at", "supervisor_notes"]
            )

            siblings = list(
                self._applications()
                .select_for_update()
                .filter(student_id=application.student_id, status=Application.Status.PENDING)
                .exclude(pk=application.pk)
                .values_list("pk", flat=True)
            )
            if siblings:
                self._applications().filter(pk__in=siblings).update(
                    status=Application.Status.REJECTED,
                    decided_at=now,
                    supervisor_notes=AUTO_REJECT_NOTE,
                )

        entries = [
            Entry(
                ActivityLog.Action.APPLICATION_APPROVED,
                ENTITY_TYPE,
                application.pk,
                {"status": application.status, "assignment_id": assignment.pk},
            )
        ]
        entries.extend(
            Entry(
                ActivityLog.Action.APPLICATION_REJECTED,
                ENTITY_TYPE,
                sibling_id,
                {"status": Application.Status.REJECTED, "reason": AUTO_REJECT_NOTE},
            )
            for sibling_id in siblings
        )
        self.recorder.record_many(supervisor, entries)
        logger.info(
            "Application %s approved by %s; assignment %s created, %d sibling(s) rejected",
            application.pk,
            supervisor.pk,
            assignment.pk,
            len(siblings),
        )
        return ApprovalResult(application=application, assignment=assignment, auto_rejected=siblings)

    def reject(self, supervisor, application_id: int, notes: str | None = "") -> Application:
        with transaction.atomic(using=self.using):
            application = self._load_for_decision(supervisor, application_id, "reject")
            notes = _validate_notes(notes)
            application.status = Application.Status.REJECTED
            application.decided_at = timezone.now()
            application.supervisor_notes = notes
            application.save(
                using=self.using, update_fields=["status", "decided_at", "supervisor_notes"]
            )

        self.recorder.record(
            supervisor,
            ActivityLog.Action.APPLICATION_REJECTED,
            ENTITY_TYPE,
            application.pk,
            details={"status": application.status, "reason": notes},
        )
        return application
