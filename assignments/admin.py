from django.contrib import admin

from .models import Assignment


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "topic", "supervisor", "status", "assigned_at")
    list_filter = ("status",)
    search_fields = ("student__username", "topic__title", "supervisor__username")
    raw_id_fields = ("replaced_by",)
