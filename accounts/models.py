from django.conf import settings
from django.db import models


class Profile(models.Model):
    """Portal-specific data attached to every user account."""

    class Role(models.TextChoices):
        STUDENT = "student", "Student"
        SUPERVISOR = "supervisor", "Supervisor"
        ADMIN = "admin", "Admin"

    class Concentration(models.TextChoices):
        SOFTWARE_ENGINEERING = "software_engineering", "Software Engineering"
        SYSTEMS = "systems", "Systems"
        AI_ML = "ai_ml", "AI/ML"
        CYBERSECURITY = "cybersecurity", "Cybersecurity"
        OTHER = "other", "Other"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile"
    )
    role = models.CharField(max_length=16, choices=Role, default=Role.STUDENT)
    full_name = models.CharField(max_length=255, blank=True)
    concentration = models.CharField(max_length=32, choices=Concentration, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    office_hours = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=["role"], name="accounts_profile_role_idx")]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.user.username} ({self.role})"


def role_of(user) -> str | None:
    """Return the effective role of ``user``.

    Staff accounts and superusers always act as admins.
    """

    if user is None or not user.is_authenticated:
        return None
    if user.is_staff or user.is_superuser:
        return Profile.Role.ADMIN
    profile = Profile.objects.filter(user_id=user.pk).only("role").first()
    return profile.role if profile else None


def is_deactivated(user) -> bool:
    return Profile.objects.filter(user_id=user.pk, deactivated_at__isnull=False).exists()
