from django.urls import path

from .views import (
    AssignmentDetailView,
    CompleteAssignmentView,
    MyAssignmentView,
    ReassignView,
    SupervisorAssignmentsView,
)

app_name = "assignments"

urlpatterns = [
    path("mine/", MyAssignmentView.as_view(), name="mine"),
    path("supervisor/", SupervisorAssignmentsView.as_view(), name="supervisor"),
    path("<int:assignment_id>/", AssignmentDetailView.as_view(), name="detail"),
    path("<int:assignment_id>/complete/", CompleteAssignmentView.as_view(), name="complete"),
    path("<int:assignment_id>/reassign/", ReassignView.as_view(), name="reassign"),
]
