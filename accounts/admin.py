from django.contrib import admin

from .models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "full_name", "concentration", "deactivated_at")
    list_filter = ("role", "concentration")
    search_fields = ("user__username", "user__email", "full_name")
