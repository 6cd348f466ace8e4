from django.urls import path

from .views import (
    ActivityExportView,
    ActivityLogListView,
    ActivityStatsView,
    EntityActivityView,
    UserActivityView,
)

app_name = "activity"

urlpatterns = [
    path("", ActivityLogListView.as_view(), name="list"),
    path("stats/", ActivityStatsView.as_view(), name="stats"),
    path("export/", ActivityExportView.as_view(), name="export"),
    path("user/<int:user_id>/", UserActivityView.as_view(), name="user"),
    path(
        "<str:entity_type>/<str:entity_id>/",
        EntityActivityView.as_view(),
        name="entity",
    ),
]
