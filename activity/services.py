"""Audit sink and reporting helpers for the activity log.

Writing an entry is fire-and-forget: a failure is reported on the ``activity``
logger and swallowed so that the operation being audited still succeeds.
Entries are written inside a savepoint, which keeps a failed insert from
poisoning an enclosing transaction.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping

from django.db import DatabaseError, DEFAULT_DB_ALIAS, transaction
from django.db.models import Count
from django.utils import timezone

from .models import ActivityLog

logger = logging.getLogger("activity")

EXPORT_COLUMNS = [
    "timestamp",
    "user",
    "email",
    "role",
    "action",
    "entity_type",
    "entity_id",
    "ip_address",
]


def client_ip(request) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR") or None


@dataclass(frozen=True)
class Entry:
    action: str
    entity_type: str
    entity_id: Any = None
    details: Mapping[str, Any] | None = None


class ActivityRecorder:
    """Append entries to the activity log on the ``using`` database."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS, ip_address: str | None = None):
        self.using = using
        self.ip_address = ip_address

    @classmethod
    def for_request(cls, request, using: str = DEFAULT_DB_ALIAS) -> "ActivityRecorder":
        return cls(using=using, ip_address=client_ip(request))

    def _build(self, actor, entry: Entry) -> ActivityLog:
        return ActivityLog(
            actor=actor,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id="" if entry.entity_id is None else str(entry.entity_id),
            details=dict(entry.details or {}),
            ip_address=self.ip_address,
        )

    def record(
        self,
        actor,
        action: str,
        entity_type: str,
        entity_id: Any = None,
        *,
        details: Mapping[str, Any] | None = None,
    ) -> ActivityLog | None:
        if actor is None or not action or not entity_type:
            logger.warning(
                "Skipping activity entry with missing fields: actor=%s action=%s entity_type=%s",
                getattr(actor, "pk", None),
                action,
                entity_type,
            )
            return None

        log = self._build(actor, Entry(action, entity_type, entity_id, details))
        try:
            with transaction.atomic(using=self.using):
                log.save(using=self.using)
        except (DatabaseError, TypeError, ValueError):
            logger.exception(
                "Failed to record activity %s on %s %s", action, entity_type, entity_id
            )
            return None
        return log

    def record_many(self, actor, entries: Iterable[Entry]) -> list[ActivityLog]:
        entries = list(entries)
        if actor is None or not entries:
            return []

        logs = [self._build(actor, entry) for entry in entries]
        try:
            with transaction.atomic(using=self.using):
                return ActivityLog.objects.using(self.using).bulk_create(logs)
        except (DatabaseError, TypeError, ValueError):
            logger.exception("Failed to record %d activity entries", len(logs))
            return []


def filter_logs(
    *,
    action: str | None = None,
    entity_type: str | None = None,
    actor_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
):
    qs = ActivityLog.objects.select_related("actor", "actor__profile")
    if action:
        qs = qs.filter(action=action)
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if actor_id:
        qs = qs.filter(actor_id=actor_id)
    if start:
        qs = qs.filter(timestamp__gte=start)
    if end:
        qs = qs.filter(timestamp__lte=end)
    return qs.order_by("-timestamp", "-id")


def activity_stats(days: int = 7, now: datetime | None = None) -> dict:
    """Aggregate activity over the last ``days`` days."""

    now = now or timezone.now()
    since = now - timedelta(days=days)
    recent = ActivityLog.objects.filter(timestamp__gte=since)

    action_stats = [
        {"action": row["action"], "count": row["count"]}
        for row in recent.values("action").annotate(count=Count("id")).order_by("-count", "action")
    ]
    top_users = [
        {
            "user_id": row["actor_id"],
            "username": row["actor__username"],
            "count": row["count"],
        }
        for row in recent.values("actor_id", "actor__username")
        .annotate(count=Count("id"))
        .order_by("-count", "actor_id")[:10]
    ]

    return {
        "period": f"Last {days} days",
        "total_logs": recent.count(),
        "action_stats": action_stats,
        "top_users": top_users,
    }


def _export_row(log: ActivityLog) -> list[str]:
    actor = log.actor
    profile = getattr(actor, "profile", None)
    return [
        log.timestamp.isoformat() if log.timestamp else "N/A",
        (profile.full_name if profile and profile.full_name else actor.username) if actor else "Unknown",
        (actor.email or "Unknown") if actor else "Unknown",
        (profile.get_role_display() if profile else "Unknown"),
        log.action or "",
        log.entity_type or "",
        log.entity_id or "",
        log.ip_address or "",
    ]


def export_csv(logs: Iterable[ActivityLog]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for log in logs:
        writer.writerow(_export_row(log))
    return buffer.getvalue()
