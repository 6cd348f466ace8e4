from django.urls import path

from .views import (
    DeclareNotNeededView,
    MySubmissionsView,
    PhaseSubmissionView,
    SupervisorSubmissionStatsView,
    SupervisorSubmissionsView,
)

app_name = "submissions"

urlpatterns = [
    path("", MySubmissionsView.as_view(), name="mine"),
    path("supervisor/", SupervisorSubmissionsView.as_view(), name="supervisor"),
    path("supervisor/stats/", SupervisorSubmissionStatsView.as_view(), name="supervisor-stats"),
    path("<str:phase>/", PhaseSubmissionView.as_view(), name="phase"),
    path("<str:phase>/declare-not-needed/", DeclareNotNeededView.as_view(), name="declare"),
]
