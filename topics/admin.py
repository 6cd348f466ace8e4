from django.contrib import admin

from .models import Topic, TopicFlag


class TopicFlagInline(admin.TabularInline):
    model = TopicFlag
    extra = 0
    readonly_fields = ("flagged_by", "flagged_at")


@admin.register(Topic)
class TopicAdmin(admin.ModelAdmin):
    list_display = ("title", "supervisor", "status", "concentration", "academic_year", "created_at")
    list_filter = ("status", "concentration", "academic_year")
    search_fields = ("title", "description", "supervisor__username")
    inlines = [TopicFlagInline]
