import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail

from .models import Application

logger = logging.getLogger(__name__)


def _or_placeholder(value: str | None) -> str:
    return value.strip() if isinstance(value, str) and value.strip() else "-"


def _display_name(user) -> str:
    profile = getattr(user, "profile", None)
    full_name = profile.full_name if profile else ""
    return _or_placeholder(full_name or user.get_username())


def format_application_message(application: Application) -> tuple[str, str]:
    topic = application.topic
    subject = f"New application for \"{_or_placeholder(topic.title)}\""
    lines = [
        f"Dear {_display_name(topic.supervisor)},",
        "",
        "A student has applied for one of your topics.",
        "",
        f"Topic: {_or_placeholder(topic.title)}",
        f"Student: {_display_name(application.student)}",
        f"Email: {_or_placeholder(application.student.email)}",
        f"Preference rank: {application.preference_rank}",
        f"Status: {application.get_status_display()}",
        "",
        "FYP Portal",
    ]
    return subject, "\n".join(lines)


def send_application_notification(application: Application) -> None:
    """Email the topic's supervisor about a new application."""
    recipient = application.topic.supervisor.email
    if not recipient:
        logger.warning(
            "Skipping application notification for %s: supervisor %s has no email",
            application.pk,
            application.topic.supervisor_id,
        )
        return

    subject, body = format_application_message(application)
    try:
        send_mail(subject, body, settings.FYP_NOTIFICATION_SENDER, [recipient])
    except (SMTPException, OSError, ValueError):
        logger.exception("Failed to send application notification for %s", application.pk)
