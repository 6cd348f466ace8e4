from django.urls import path

from .views import (
    ApplicationDetailView,
    ApplicationStatsView,
    ApplyView,
    ApproveApplicationView,
    MyApplicationsView,
    RejectApplicationView,
    SupervisorApplicationsView,
    TopicApplicationStatsView,
)

app_name = "applications"

urlpatterns = [
    path("", ApplyView.as_view(), name="apply"),
    path("my-applications/", MyApplicationsView.as_view(), name="mine"),
    path("supervisor/", SupervisorApplicationsView.as_view(), name="supervisor"),
    path("stats/", ApplicationStatsView.as_view(), name="stats"),
    path("topic/<int:topic_id>/stats/", TopicApplicationStatsView.as_view(), name="topic-stats"),
    path("<int:application_id>/", ApplicationDetailView.as_view(), name="detail"),
    path("<int:application_id>/approve/", ApproveApplicationView.as_view(), name="approve"),
    path("<int:application_id>/reject/", RejectApplicationView.as_view(), name="reject"),
]
