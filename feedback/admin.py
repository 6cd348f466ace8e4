from django.contrib import admin

from .models import Feedback


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ("submission", "supervisor", "rating", "is_private", "created_at")
    list_filter = ("is_private", "rating")
    search_fields = ("supervisor__username", "submission__student__username", "text")
