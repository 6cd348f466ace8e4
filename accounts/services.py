"""Admin user management: listing, deactivation and reactivation."""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
from rest_framework import exceptions

from activity.models import ActivityLog
from activity.services import ActivityRecorder
from fypportal.errors import InvalidState

from .models import Profile

ENTITY_TYPE = "User"
MAX_REASON_LENGTH = 1000


class AccountStatus:
    ACTIVE = "active"
    DEACTIVATED = "deactivated"
    ALL = "all"

    choices = (ACTIVE, DEACTIVATED, ALL)


def list_users(
    *,
    role: str | None = None,
    status: str = AccountStatus.ACTIVE,
    using: str = DEFAULT_DB_ALIAS,
):
    qs = get_user_model().objects.using(using).select_related("profile")
    if role:
        qs = qs.filter(profile__role=role)
    if status == AccountStatus.ACTIVE:
        qs = qs.filter(profile__deactivated_at__isnull=True)
    elif status == AccountStatus.DEACTIVATED:
        qs = qs.filter(profile__deactivated_at__isnull=False)
    return qs.order_by("-date_joined", "-id")


def get_user(user_id: int, using: str = DEFAULT_DB_ALIAS):
    user = get_user_model().objects.using(using).select_related("profile").filter(pk=user_id).first()
    if user is None:
        raise exceptions.NotFound("User not found.")
    return user


def _lock_profile(user_id: int, using: str) -> Profile:
    profile = (
        Profile.objects.using(using)
        .select_for_update()
        .select_related("user")
        .filter(user_id=user_id)
        .first()
    )
    if profile is None:
        raise exceptions.NotFound("User not found.")
    return profile


def deactivate_user(
    admin,
    user_id: int,
    reason: str | None = "",
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
):
    """Block the account from signing in and from every API endpoint."""

    recorder = recorder or ActivityRecorder(using=using)
    reason = (reason or "").strip()
    if len(reason) > MAX_REASON_LENGTH:
        raise exceptions.ValidationError(
            {"reason": f"Ensure this field has no more than {MAX_REASON_LENGTH} characters."}
        )
    if admin.pk == user_id:
        raise InvalidState("You cannot deactivate your own account.")

    with transaction.atomic(using=using):
        profile = _lock_profile(user_id, using)
        if profile.deactivated_at is not None:
            raise InvalidState("User is already deactivated.")
        profile.deactivated_at = timezone.now()
        profile.save(using=using, update_fields=["deactivated_at", "updated_at"])
        user = profile.user
        user.is_active = False
        user.save(using=using, update_fields=["is_active"])

    recorder.record(
        admin,
        ActivityLog.Action.USER_DEACTIVATED,
        ENTITY_TYPE,
        user.pk,
        details={"reason": reason or "No reason provided"},
    )
    return user


def reactivate_user(
    admin,
    user_id: int,
    *,
    recorder: ActivityRecorder | None = None,
    using: str = DEFAULT_DB_ALIAS,
):
    recorder = recorder or ActivityRecorder(using=using)
    with transaction.atomic(using=using):
        profile = _lock_profile(user_id, using)
        if profile.deactivated_at is None:
            raise InvalidState("User is already active.")
        profile.deactivated_at = None
        profile.save(using=using, update_fields=["deactivated_at", "updated_at"])
        user = profile.user
        user.is_active = True
        user.save(using=using, update_fields=["is_active"])

    recorder.record(
        admin,
        ActivityLog.Action.USER_REACTIVATED,
        ENTITY_TYPE,
        user.pk,
        details={"reason": "User reactivated by admin"},
    )
    return user
