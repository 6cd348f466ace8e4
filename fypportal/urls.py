"""
URL configuration for the fypportal project.

Every API lives under ``/api/``; the Django admin stays at ``/admin/``.
"""
from django.contrib import admin
from django.urls import include, path

from .views import HealthView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health/", HealthView.as_view(), name="health"),
    path("api/accounts/", include("accounts.urls")),
    path("api/topics/", include("topics.urls")),
    path("api/applications/", include("applications.urls")),
    path("api/assignments/", include("assignments.urls")),
    path("api/submissions/", include("submissions.urls")),
    path("api/feedback/", include("feedback.urls")),
    path("api/dashboard/", include("dashboard.urls")),
    path("api/activity/", include("activity.urls")),
]
