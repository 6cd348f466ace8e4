"""Read-side helpers for applications: listings, detail access and counts."""
from __future__ import annotations

from django.db import DEFAULT_DB_ALIAS
from django.db.models import Count
from rest_framework import exceptions

from accounts.models import Profile, role_of
from topics.services import get_owned_topic

from .models import Application


def _base_queryset(using: str = DEFAULT_DB_ALIAS):
    return Application.objects.using(using).select_related(
        "student", "student__profile", "topic", "topic__supervisor"
    )


def student_applications(student, *, status: str | None = None, using: str = DEFAULT_DB_ALIAS):
    qs = _base_queryset(using).filter(student=student)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("preference_rank", "-applied_at")


def supervisor_applications(
    supervisor, *, status: str | None = None, using: str = DEFAULT_DB_ALIAS
):
    qs = _base_queryset(using).filter(topic__supervisor=supervisor)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("topic_id", "preference_rank", "applied_at")


def get_application_for(user, application_id: int, using: str = DEFAULT_DB_ALIAS) -> Application:
    """Return an application visible to ``user``.

    The applicant, the topic's supervisor and admins may read it.
    """

    application = _base_queryset(using).filter(pk=application_id).first()
    if application is None:
        raise exceptions.NotFound("Application not found.")
    if role_of(user) == Profile.Role.ADMIN:
        return application
    if user.pk not in (application.student_id, application.topic.supervisor_id):
        raise exceptions.PermissionDenied("You cannot view this application.")
    return application


def _status_counts(queryset) -> dict:
    result = {"total": 0, "pending": 0, "approved": 0, "rejected": 0}
    for row in queryset.values("status").annotate(count=Count("id")).order_by():
        result["total"] += row["count"]
        result[row["status"]] = row["count"]
    return result


def application_stats(supervisor, using: str = DEFAULT_DB_ALIAS) -> dict:
    return _status_counts(Application.objects.using(using).filter(topic__supervisor=supervisor))


def topic_application_stats(supervisor, topic_id: int, using: str = DEFAULT_DB_ALIAS) -> dict:
    topic = get_owned_topic(supervisor, topic_id, using=using)
    result = _status_counts(Application.objects.using(using).filter(topic=topic))
    return {"topic_id": topic.pk, **result}
