"""Topic lifecycle: Draft → Active → Archived, plus admin moderation flags.

Every state change is audited through :class:`activity.services.ActivityRecorder`.
Ownership is checked once, in :func:`get_owned_topic`, at the top of each
supervisor operation. Admins bypass ownership only for archiving.
"""
from __future__ import annotations

from typing import Any, Mapping

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Count, Max, ProtectedError, Q
from django.utils import timezone
from rest_framework import exceptions

from accounts.models import Profile, role_of
from activity.models import ActivityLog
from activity.services import ActivityRecorder
from fypportal.errors import Conflict, InvalidState

from .models import Topic, TopicFlag

ENTITY_TYPE = "Topic"
MAX_REASON_LENGTH = 1000

EDITABLE_FIELDS = (
    "title",
    "description",
    "concentration",
    "academic_year",
    "keywords",
    "reference_documents",
    "application_deadline",
    "max_applications",
)


def visible_topics(
    user,
    *,
    status: str | None = None,
    concentration: str | None = None,
    academic_year: int | None = None,
    supervisor_id: int | None = None,
    search: str | None = None,
    using: str = DEFAULT_DB_ALIAS,
):
    """Topics ``user`` may browse, narrowed by the optional filters.

    Students only see Active topics. Supervisors also see their own drafts and
    archived topics. Admins see everything.
    """

    qs = Topic.objects.using(using).select_related("supervisor", "supervisor__profile")
    role = role_of(user)
    if role == Profile.Role.SUPERVISOR:
        qs = qs.filter(Q(status=Topic.Status.ACTIVE) | Q(supervisor=user))
    elif role != Profile.Role.ADMIN:
        qs = qs.filter(status=Topic.Status.ACTIVE)

    if status:
        qs = qs.filter(status=status)
    if concentration:
        qs = qs.filter(concentration=concentration)
    if academic_year:
        qs = qs.filter(academic_year=academic_year)
    if supervisor_id:
        qs = qs.filter(supervisor_id=supervisor_id)
    if search:
        qs = qs.filter(
            Q(title__icontains=search)
            | Q(description__icontains=search)
            | Q(keywords__icontains=search)
        )
    return qs.order_by("-created_at", "-id")


def supervisor_topics(supervisor, *, status: str | None = None, using: str = DEFAULT_DB_ALIAS):
    qs = Topic.objects.using(using).filter(supervisor=supervisor)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at", "-id")


def get_visible_topic(user, topic_id: int, using: str = DEFAULT_DB_ALIAS) -> Topic:
    topic = visible_topics(user, using=using).filter(pk=topic_id).first()
    if topic is None:
        raise exceptions.NotFound("Topic not found.")
    return topic


def get_owned_topic(
    supervisor, topic_id: int, *, using: str = DEFAULT_DB_ALIAS, for_update: bool = False
) -> Topic:
    """Return the topic if ``supervisor`` owns it.

    Raises ``NotFound`` for an unknown id and ``PermissionDenied`` for a topic
    owned by somebody else.
    """

    qs = Topic.objects.using(using)
    if for_update:
        qs = qs.select_for_update()
    topic = qs.filter(pk=topic_id).first()
    if topic is None:
        raise exceptions.NotFound("Topic not found.")
    if topic.supervisor_id != supervisor.pk:
        raise exceptions.PermissionDenied("You can only manage your own topics.")
    return topic


def create_topic(
    supervisor,
    data: Mapping[str, Any],
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Topic:
    recorder = recorder or ActivityRecorder(using=using)
    fields = {name: data[name] for name in EDITABLE_FIELDS if name in data}
    topic = Topic(supervisor=supervisor, status=Topic.Status.DRAFT, **fields)
    topic.save(using=using)
    recorder.record(
        supervisor,
        ActivityLog.Action.TOPIC_CREATED,
        ENTITY_TYPE,
        topic.pk,
        details={"title": topic.title},
    )
    return topic


def update_topic(
    supervisor,
    topic_id: int,
    data: Mapping[str, Any],
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Topic:
    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        topic = get_owned_topic(supervisor, topic_id, using=using, for_update=True)
        if topic.status != Topic.Status.DRAFT:
            raise InvalidState("Only draft topics can be edited.")
        changed = [name for name in EDITABLE_FIELDS if name in data]
        for name in changed:
            setattr(topic, name, data[name])
        topic.save(using=using)
    recorder.record(
        supervisor,
        ActivityLog.Action.TOPIC_UPDATED,
        ENTITY_TYPE,
        topic.pk,
        details={"fields": changed},
    )
    return topic


def publish_topic(
    supervisor,
    topic_id: int,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Topic:
    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        topic = get_owned_topic(supervisor, topic_id, using=using, for_update=True)
        if topic.status != Topic.Status.DRAFT:
            raise InvalidState("Only draft topics can be published.")
        topic.status = Topic.Status.ACTIVE
        topic.save(using=using, update_fields=["status", "updated_at"])
    recorder.record(
        supervisor,
        ActivityLog.Action.TOPIC_PUBLISHED,
        ENTITY_TYPE,
        topic.pk,
        details={"title": topic.title},
    )
    return topic


def archive_topic(
    actor,
    topic_id: int,
    reason: str | None = "",
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> Topic:
    """Archive a topic. Supervisors archive their own; admins archive any."""

    recorder = recorder or ActivityRecorder(using=using)
    reason = _clean_reason(reason, required=False)
    with transaction.atomic(using=using):
        if role_of(actor) == Profile.Role.ADMIN:
            topic = _lock_topic(topic_id, using)
        else:
            topic = get_owned_topic(actor, topic_id, using=using, for_update=True)
        if topic.status == Topic.Status.ARCHIVED:
            raise InvalidState("Topic is already archived.")
        previous_status = topic.status
        topic.status = Topic.Status.ARCHIVED
        topic.archived_at = timezone.now()
        topic.save(using=using, update_fields=["status", "archived_at", "updated_at"])
    details = {"previous_status": previous_status}
    if reason:
        details["reason"] = reason
    recorder.record(
        actor, ActivityLog.Action.TOPIC_ARCHIVED, ENTITY_TYPE, topic.pk, details=details
    )
    return topic


def _lock_topic(topic_id: int, using: str) -> Topic:
    topic = Topic.objects.using(using).select_for_update().filter(pk=topic_id).first()
    if topic is None:
        raise exceptions.NotFound("Topic not found.")
    return topic


def _clean_reason(reason: str | None, *, required: bool) -> str:
    reason = (reason or "").strip()
    if required and not reason:
        raise exceptions.ValidationError({"reason": "A reason is required."})
    if len(reason) > MAX_REASON_LENGTH:
        raise exceptions.ValidationError(
            {"reason": f"Ensure this field has no more than {MAX_REASON_LENGTH} characters."}
        )
    return reason


def flagged_topics(*, using: str = DEFAULT_DB_ALIAS):
    """Topics carrying at least one open flag, most recently flagged first."""

    return (
        Topic.objects.using(using)
        .select_related("supervisor", "supervisor__profile")
        .annotate(flag_count=Count("flags"), last_flagged_at=Max("flags__flagged_at"))
        .filter(flag_count__gt=0)
        .prefetch_related("flags__flagged_by")
        .order_by("-last_flagged_at", "-id")
    )


def flag_topic(
    admin,
    topic_id: int,
    reason: str | None,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> TopicFlag:
    recorder = recorder or ActivityRecorder(using=using)
    reason = _clean_reason(reason, required=True)
    with transaction.atomic(using=using):
        topic = _lock_topic(topic_id, using)
        flag = TopicFlag(topic=topic, reason=reason, flagged_by=admin)
        flag.save(using=using)
    recorder.record(
        admin,
        ActivityLog.Action.TOPIC_FLAGGED,
        ENTITY_TYPE,
        topic.pk,
        details={"reason": reason, "flag_id": flag.pk},
    )
    return flag


def clear_topic_flags(
    admin,
    topic_id: int,
    reason: str | None = "",
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> int:
    """Drop every flag on the topic and return how many were removed."""

    recorder = recorder or ActivityRecorder(using=using)
    reason = _clean_reason(reason, required=False)
    with transaction.atomic(using=using):
        topic = _lock_topic(topic_id, using)
        cleared, _ = TopicFlag.objects.using(using).filter(topic=topic).delete()
    if not cleared:
        raise InvalidState("Topic has no flags to clear.")
    recorder.record(
        admin,
        ActivityLog.Action.TOPIC_FLAGS_CLEARED,
        ENTITY_TYPE,
        topic.pk,
        details={"cleared": cleared, "reason": reason or "No reason provided"},
    )
    return cleared


def delete_topic(
    admin,
    topic_id: int,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> None:
    """Remove a topic together with its applications.

    Topics that already produced assignments or submissions are protected and
    raise ``Conflict``; archive them instead.
    """

    recorder = recorder or ActivityRecorder(using=using)
    topic = Topic.objects.using(using).filter(pk=topic_id).first()
    if topic is None:
        raise exceptions.NotFound("Topic not found.")
    title = topic.title
    try:
        with transaction.atomic(using=using):
            topic.delete(using=using)
    except ProtectedError as exc:
        raise Conflict("Topic has assignments and cannot be deleted; archive it instead.") from exc
    recorder.record(
        admin,
        ActivityLog.Action.TOPIC_DELETED,
        ENTITY_TYPE,
        topic_id,
        details={"title": title},
    )
