"""Read-only aggregates for the admin dashboard."""
from __future__ import annotations

from datetime import timedelta

from django.db import DEFAULT_DB_ALIAS
from django.db.models import Count, Q
from django.utils import timezone

from accounts.models import Profile
from applications.models import Application
from assignments.models import Assignment
from submissions.models import Submission
from topics.models import Topic

DUE_SOON_DAYS = 7


def _counts_by_status(queryset, statuses) -> dict:
    result = {"total": 0, **{value: 0 for value in statuses}}
    for row in queryset.values("status").annotate(count=Count("id")).order_by():
        result["total"] += row["count"]
        result[row["status"]] = row["count"]
    return result


def user_stats(using: str = DEFAULT_DB_ALIAS) -> dict:
    active = Q(deactivated_at__isnull=True)
    return Profile.objects.using(using).aggregate(
        total=Count("id"),
        students=Count("id", filter=Q(role=Profile.Role.STUDENT)),
        supervisors=Count("id", filter=Q(role=Profile.Role.SUPERVISOR)),
        admins=Count("id", filter=Q(role=Profile.Role.ADMIN)),
        active=Count("id", filter=active),
        deactivated=Count("id", filter=~active),
    )


def system_stats(using: str = DEFAULT_DB_ALIAS) -> dict:
    topics = _counts_by_status(Topic.objects.using(using), Topic.Status.values)
    topics["flagged"] = (
        Topic.objects.using(using).filter(flags__isnull=False).distinct().count()
    )
    return {
        "users": user_stats(using),
        "topics": topics,
        "applications": application_stats(using),
        "assignments": _counts_by_status(
            Assignment.objects.using(using), Assignment.Status.values
        ),
        "submissions": _counts_by_status(
            Submission.objects.using(using), Submission.Status.values
        ),
    }


def concentration_stats(using: str = DEFAULT_DB_ALIAS) -> list[dict]:
    """Active topics per concentration, busiest first."""

    rows = (
        Topic.objects.using(using)
        .filter(status=Topic.Status.ACTIVE)
        .values("concentration")
        .annotate(topics=Count("id"))
        .order_by("-topics", "concentration")
    )
    labels = dict(Topic.Concentration.choices)
    return [
        {
            "concentration": row["concentration"],
            "label": labels.get(row["concentration"], row["concentration"]),
            "topics": row["topics"],
        }
        for row in rows
    ]


def application_stats(using: str = DEFAULT_DB_ALIAS) -> dict:
    return _counts_by_status(Application.objects.using(using), Application.Status.values)


def submission_deadline_stats(now=None, using: str = DEFAULT_DB_ALIAS) -> dict:
    """Deadline health across every phase row.

    A not-submitted row past its due date counts as overdue even before the
    reminder job flips its status.
    """

    now = now or timezone.now()
    not_submitted = Q(status=Submission.Status.NOT_SUBMITTED)
    late = Q(status=Submission.Status.OVERDUE) | (not_submitted & Q(due_date__lt=now))
    return Submission.objects.using(using).aggregate(
        total=Count("id"),
        submitted=Count("id", filter=Q(status=Submission.Status.SUBMITTED)),
        pending=Count("id", filter=not_submitted & Q(due_date__gte=now)),
        overdue=Count("id", filter=late),
        due_soon=Count(
            "id",
            filter=not_submitted
            & Q(due_date__gte=now, due_date__lte=now + timedelta(days=DUE_SOON_DAYS)),
        ),
        declared_not_needed=Count("id", filter=Q(status=Submission.Status.DECLARED_NOT_NEEDED)),
    )
