"""Late-submission reminder emails.

Run periodically through ``manage.py send_late_reminders`` (cron or any other
scheduler). Each late phase is reminded once; ``reminder_sent_at`` is stamped
only after the mail backend accepted the message.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from activity.models import ActivityLog
from activity.services import ActivityRecorder

from .models import Submission

logger = logging.getLogger(__name__)

LATE_STATUSES = (Submission.Status.NOT_SUBMITTED, Submission.Status.OVERDUE)


@dataclass
class ReminderSummary:
    total: int = 0
    sent: int = 0
    failed: int = 0


def find_late_submissions(now: datetime | None = None, using: str = DEFAULT_DB_ALIAS):
    now = now or timezone.now()
    return (
        Submission.objects.using(using)
        .select_related("student", "student__profile", "topic")
        .filter(status__in=LATE_STATUSES, due_date__lt=now, reminder_sent_at__isnull=True)
        .order_by("due_date", "id")
    )


def mark_overdue(now: datetime | None = None, using: str = DEFAULT_DB_ALIAS) -> int:
    now = now or timezone.now()
    return (
        Submission.objects.using(using)
        .filter(status=Submission.Status.NOT_SUBMITTED, due_date__lt=now)
        .update(status=Submission.Status.OVERDUE, updated_at=now)
    )


def _student_name(student) -> str:
    profile = getattr(student, "profile", None)
    return (profile.full_name if profile and profile.full_name else "") or student.get_username()


def build_reminder(submission: Submission) -> tuple[str, str]:
    phase = submission.get_phase_display()
    due = timezone.localtime(submission.due_date).strftime("%Y-%m-%d %H:%M")
    subject = f"Reminder: {phase} submission is overdue"
    body = "\n".join(
        [
            f"Dear {_student_name(submission.student)},",
            "",
            f"Your {phase} for \"{submission.topic.title}\" was due on {due} and has not been submitted yet.",
            "Please submit it as soon as possible or contact your supervisor.",
            "",
            "FYP Portal",
        ]
    )
    return subject, body


def send_late_reminders(
    now: datetime | None = None,
    *,
    dry_run: bool = False,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> ReminderSummary:
    """Email every student with a late, not yet reminded phase."""

    now = now or timezone.now()
    recorder = recorder or ActivityRecorder(using=using)
    late = list(find_late_submissions(now, using=using))
    summary = ReminderSummary(total=len(late))
    if dry_run:
        return summary

    mark_overdue(now, using=using)
    for submission in late:
        student = submission.student
        if not student.email:
            logger.warning("Student %s has no email address; reminder skipped", student.pk)
            summary.failed += 1
            continue

        subject, body = build_reminder(submission)
        try:
            send_mail(
                subject,
                body,
                settings.FYP_REMINDER_SENDER,
                [student.email],
                fail_silently=False,
            )
        except (SMTPException, OSError, ValueError):
            logger.exception(
                "Failed to send reminder for submission %s to %s", submission.pk, student.email
            )
            summary.failed += 1
            continue

        Submission.objects.using(using).filter(pk=submission.pk).update(
            reminder_sent_at=now, updated_at=now
        )
        recorder.record(
            student,
            ActivityLog.Action.REMINDER_SENT,
            "Submission",
            submission.pk,
            details={"phase": submission.phase, "email": student.email},
        )
        summary.sent += 1

    logger.info(
        "Late reminders: sent=%d failed=%d total=%d", summary.sent, summary.failed, summary.total
    )
    return summary
