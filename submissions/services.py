"""Phase submissions for students holding an Active assignment."""
from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Count, F, Q
from django.utils import timezone
from rest_framework import exceptions

from activity.models import ActivityLog
from activity.services import ActivityRecorder
from assignments.models import Assignment
from fypportal.errors import InvalidState

from .models import Submission

ENTITY_TYPE = "Submission"
MAX_REASON_LENGTH = 1000
OPEN_STATUSES = (Submission.Status.NOT_SUBMITTED, Submission.Status.OVERDUE)


def due_date_for(phase: str, start=None):
    """Deadline of ``phase`` counted from ``start`` (the assignment date)."""

    start = start or timezone.now()
    return start + timedelta(days=settings.FYP_SUBMISSION_PHASE_DAYS[phase])


def schedule_phases(assignment: Assignment, using: str = DEFAULT_DB_ALIAS) -> list[Submission]:
    """Open one row per phase for a freshly Active assignment.

    Phases still open from an earlier assignment move to the new topic and get
    deadlines counted from ``assignment.assigned_at``. Submitted and declared
    phases are left alone. Call inside the transaction that creates the
    assignment.
    """

    existing = {
        row.phase: row
        for row in Submission.objects.using(using)
        .select_for_update()
        .filter(student_id=assignment.student_id)
    }
    rows = []
    for phase in Submission.Phase.values:
        due_date = due_date_for(phase, assignment.assigned_at)
        row = existing.get(phase)
        if row is None:
            row = Submission(
                student_id=assignment.student_id,
                topic_id=assignment.topic_id,
                phase=phase,
                due_date=due_date,
            )
            row.save(using=using)
        elif row.status in OPEN_STATUSES:
            row.topic_id = assignment.topic_id
            row.status = Submission.Status.NOT_SUBMITTED
            row.due_date = due_date
            row.reminder_sent_at = None
            row.save(using=using)
        rows.append(row)
    return rows


def _active_assignment(student, using: str) -> Assignment:
    assignment = (
        Assignment.objects.using(using)
        .filter(student=student, status=Assignment.Status.ACTIVE)
        .first()
    )
    if assignment is None:
        raise InvalidState("No active assignment found.")
    return assignment


def _phase_row(student, phase: str, using: str) -> Submission:
    if phase not in Submission.Phase.values:
        raise exceptions.ValidationError({"phase": f'"{phase}" is not a valid phase.'})
    assignment = _active_assignment(student, using)
    submission, created = (
        Submission.objects.using(using)
        .select_for_update()
        .get_or_create(
            student=student,
            phase=phase,
            defaults={
                "topic_id": assignment.topic_id,
                "due_date": due_date_for(phase, assignment.assigned_at),
            },
        )
    )
    if not created and submission.topic_id != assignment.topic_id:
        submission.topic_id = assignment.topic_id
    return submission


def submit_document(
    student,
    phase: str,
    document_url: str,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Submission:
    recorder = recorder or ActivityRecorder(using=using)
    if not document_url:
        raise exceptions.ValidationError({"document_url": "This field is required."})

    with transaction.atomic(using=using):
        submission = _phase_row(student, phase, using)
        submission.status = Submission.Status.SUBMITTED
        submission.submitted_at = timezone.now()
        submission.document_url = document_url
        submission.save(using=using)

    recorder.record(
        student,
        ActivityLog.Action.DOCUMENT_SUBMITTED,
        ENTITY_TYPE,
        submission.pk,
        details={"phase": phase, "document_url": document_url},
    )
    return submission


def declare_not_needed(
    student,
    phase: str,
    reason: str,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Submission:
    recorder = recorder or ActivityRecorder(using=using)
    reason = (reason or "").strip()
    if not reason:
        raise exceptions.ValidationError({"reason": "Declaration reason required."})
    if len(reason) > MAX_REASON_LENGTH:
        raise exceptions.ValidationError(
            {"reason": f"Ensure this field has no more than {MAX_REASON_LENGTH} characters."}
        )

    with transaction.atomic(using=using):
        submission = _phase_row(student, phase, using)
        submission.status = Submission.Status.DECLARED_NOT_NEEDED
        submission.declaration_reason = reason
        submission.declared_at = timezone.now()
        submission.save(using=using)

    recorder.record(
        student,
        ActivityLog.Action.SUBMISSION_DECLARED,
        ENTITY_TYPE,
        submission.pk,
        details={"phase": phase, "reason": reason},
    )
    return submission


def student_submissions(student, using: str = DEFAULT_DB_ALIAS):
    return (
        Submission.objects.using(using)
        .select_related("topic")
        .filter(student=student)
        .order_by("due_date", "id")
    )


def get_student_submission(student, phase: str, using: str = DEFAULT_DB_ALIAS) -> Submission:
    submission = student_submissions(student, using).filter(phase=phase).first()
    if submission is None:
        raise exceptions.NotFound("Submission not found.")
    return submission


def supervisor_submissions(
    supervisor,
    *,
    phase: str | None = None,
    status: str | None = None,
    using: str = DEFAULT_DB_ALIAS,
):
    """Submissions of the students the supervisor currently supervises."""

    # At most one Active assignment per student, so the join never duplicates rows.
    qs = (
        Submission.objects.using(using)
        .select_related("student", "student__profile", "topic")
        .filter(
            student__assignments__supervisor=supervisor,
            student__assignments__status=Assignment.Status.ACTIVE,
            student__assignments__topic=F("topic"),
        )
    )
    if phase:
        qs = qs.filter(phase=phase)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-submitted_at", "due_date", "id")


def supervisor_submission_stats(supervisor, using: str = DEFAULT_DB_ALIAS) -> list[dict]:
    """Per-phase status counts over the supervisor's current students."""

    rows = (
        supervisor_submissions(supervisor, using=using)
        .order_by()
        .values("phase")
        .annotate(
            total=Count("id"),
            submitted=Count("id", filter=Q(status=Submission.Status.SUBMITTED)),
            not_submitted=Count("id", filter=Q(status=Submission.Status.NOT_SUBMITTED)),
            overdue=Count("id", filter=Q(status=Submission.Status.OVERDUE)),
            declared_not_needed=Count(
                "id", filter=Q(status=Submission.Status.DECLARED_NOT_NEEDED)
            ),
        )
    )
    by_phase = {row["phase"]: row for row in rows}
    return [by_phase[phase] for phase in Submission.Phase.values if phase in by_phase]
