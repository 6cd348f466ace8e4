from django.urls import path

from .views import FeedbackDetailView, SubmissionFeedbackStatsView, SubmissionFeedbackView

app_name = "feedback"

urlpatterns = [
    path("submissions/<int:submission_id>/", SubmissionFeedbackView.as_view(), name="submission"),
    path(
        "submissions/<int:submission_id>/stats/",
        SubmissionFeedbackStatsView.as_view(),
        name="submission-stats",
    ),
    path("<int:feedback_id>/", FeedbackDetailView.as_view(), name="detail"),
]
