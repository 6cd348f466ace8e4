from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion

import topics.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Topic",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "title",
                    models.CharField(
                        max_length=255,
                        validators=[django.core.validators.MinLengthValidator(5)],
                    ),
                ),
                (
                    "description",
                    models.TextField(
                        validators=[
                            django.core.validators.MinLengthValidator(50),
                            django.core.validators.MaxLengthValidator(5000),
                        ]
                    ),
                ),
                (
                    "concentration",
                    models.CharField(
                        choices=[
                            ("software_engineering", "Software Engineering"),
                            ("systems", "Systems"),
                            ("ai_ml", "AI/ML"),
                            ("cybersecurity", "Cybersecurity"),
                            ("other", "Other"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "academic_year",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(6),
                        ],
                    ),
                ),
                (
                    "keywords",
                    models.JSONField(blank=True, default=list, validators=[topics.models.validate_keywords]),
                ),
                (
                    "reference_documents",
                    models.JSONField(
                        blank=True, default=list, validators=[topics.models.validate_reference_documents]
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("active", "Active"), ("archived", "Archived")],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("application_deadline", models.DateTimeField(blank=True, null=True)),
                (
                    "max_applications",
                    models.PositiveIntegerField(
                        default=5, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                (
                    "supervisor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="topics",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["supervisor", "status"], name="topics_supervisor_status_idx"),
                    models.Index(fields=["concentration", "academic_year"], name="topics_conc_year_idx"),
                ],
            },
        ),
    ]
