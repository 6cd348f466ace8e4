from django.contrib import admin

from .models import Application


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "topic", "preference_rank", "status", "applied_at")
    list_filter = ("status", "preference_rank")
    search_fields = ("student__username", "topic__title")
