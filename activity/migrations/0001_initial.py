from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("login", "Login"),
                            ("topic_created", "Topic created"),
                            ("topic_updated", "Topic updated"),
                            ("topic_published", "Topic published"),
                            ("topic_archived", "Topic archived"),
                            ("topic_deleted", "Topic deleted"),
                            ("application_submitted", "Application submitted"),
                            ("application_withdrawn", "Application withdrawn"),
                            ("application_approved", "Application approved"),
                            ("application_rejected", "Application rejected"),
                            ("assignment_created", "Assignment created"),
                            ("assignment_completed", "Assignment completed"),
                            ("assignment_changed", "Assignment changed"),
                            ("document_submitted", "Document submitted"),
                            ("submission_declared_not_needed", "Submission declared not needed"),
                            ("reminder_sent", "Reminder sent"),
                        ],
                        max_length=100,
                    ),
                ),
                ("entity_type", models.CharField(max_length=50)),
                ("entity_id", models.CharField(blank=True, max_length=64)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                (
                    "actor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="activity_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-timestamp", "-id"],
                "indexes": [
                    models.Index(fields=["actor", "timestamp"], name="activity_actor_ts_idx"),
                    models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
                    models.Index(fields=["action", "timestamp"], name="activity_action_ts_idx"),
                ],
            },
        ),
    ]
