from django.urls import path

from .views import (
    ApplicationStatsView,
    ConcentrationStatsView,
    SubmissionDeadlineStatsView,
    SystemStatsView,
)

app_name = "dashboard"

urlpatterns = [
    path("system-stats/", SystemStatsView.as_view(), name="system-stats"),
    path("concentration-stats/", ConcentrationStatsView.as_view(), name="concentration-stats"),
    path("application-stats/", ApplicationStatsView.as_view(), name="application-stats"),
    path(
        "submission-deadline-stats/",
        SubmissionDeadlineStatsView.as_view(),
        name="submission-deadline-stats",
    ),
]
