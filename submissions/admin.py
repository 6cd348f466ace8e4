from django.contrib import admin

from .models import Submission


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("student", "phase", "status", "due_date", "submitted_at", "reminder_sent_at")
    list_filter = ("phase", "status")
    search_fields = ("student__username", "topic__title")
