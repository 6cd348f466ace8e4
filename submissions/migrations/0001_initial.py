from django.conf import settings
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
            name="Submission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "phase",
                    models.CharField(
                        choices=[
                            ("initial_statement", "Initial Statement"),
                            ("progress_report_1", "Progress Report 1"),
                            ("progress_report_2", "Progress Report 2"),
                            ("final_dissertation", "Final Dissertation"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("not_submitted", "Not Submitted"),
                            ("submitted", "Submitted"),
                            ("overdue", "Overdue"),
                            ("declared_not_needed", "Declared Not Needed"),
                        ],
                        default="not_submitted",
                        max_length=32,
                    ),
                ),
                ("due_date", models.DateTimeField()),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("document_url", models.URLField(blank=True, max_length=500)),
                ("declaration_reason", models.CharField(blank=True, max_length=1000)),
                ("declared_at", models.DateTimeField(blank=True, null=True)),
                ("reminder_sent_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="submissions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "topic",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="submissions",
                        to="topics.topic",
                    ),
                ),
            ],
            options={
                "ordering": ["due_date", "id"],
                "indexes": [
                    models.Index(fields=["student", "status"], name="submission_student_st_idx"),
                    models.Index(fields=["due_date", "status"], name="submission_due_st_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("student", "phase"), name="submission_unique_student_phase"
                    ),
                ],
            },
        ),
    ]
