from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("topics", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "preference_rank",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(5),
                        ]
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("supervisor_notes", models.CharField(blank=True, max_length=1000)),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="topic_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "topic",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applications",
                        to="topics.topic",
                    ),
                ),
            ],
            options={
                "ordering": ["-applied_at", "-id"],
                "indexes": [
                    models.Index(fields=["student", "status"], name="application_student_st_idx"),
                    models.Index(fields=["topic", "status"], name="application_topic_st_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("student", "topic"), name="application_unique_student_topic"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("preference_rank__gte", 1), ("preference_rank__lte", 5)),
                        name="application_rank_range",
                    ),
                ],
            },
        ),
    ]
