from django.conf import settings
from django.contrib.auth.signals import user_logged_in
from django.db.models.signals import post_save
from django.dispatch import receiver

from activity.models import ActivityLog
from activity.services import ActivityRecorder

from .models import Profile


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_profile(sender, instance, created, **kwargs):
    if created:
        Profile.objects.get_or_create(user=instance)


@receiver(user_logged_in)
def record_login(sender, request, user, **kwargs):
    recorder = ActivityRecorder.for_request(request) if request is not None else ActivityRecorder()
    recorder.record(user, ActivityLog.Action.LOGIN, "User", user.pk)
