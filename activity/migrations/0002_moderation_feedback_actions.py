from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("activity", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="activitylog",
            name="action",
            field=models.CharField(
                choices=[
                    ("login", "Login"),
                    ("topic_created", "Topic created"),
                    ("topic_updated", "Topic updated"),
                    ("topic_published", "Topic published"),
                    ("topic_archived", "Topic archived"),
                    ("topic_deleted", "Topic deleted"),
                    ("topic_flagged", "Topic flagged"),
                    ("topic_flags_cleared", "Topic flags cleared"),
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
                    ("feedback_added", "Feedback added"),
                    ("feedback_updated", "Feedback updated"),
                    ("feedback_deleted", "Feedback deleted"),
                    ("user_deactivated", "User deactivated"),
                    ("user_reactivated", "User reactivated"),
                ],
                max_length=100,
            ),
        ),
    ]
