from functools import partial

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Application
from .notifications import send_application_notification


@receiver(post_save, sender=Application)
def notify_application_created(sender, instance: Application, created: bool, using=None, **kwargs):
    if created:
        transaction.on_commit(partial(send_application_notification, instance), using=using)
