from django.urls import path

from .views import (
    FlaggedTopicsView,
    MyTopicsView,
    TopicArchiveView,
    TopicClearFlagsView,
    TopicDetailView,
    TopicFlagView,
    TopicListCreateView,
    TopicPublishView,
)

app_name = "topics"

urlpatterns = [
    path("", TopicListCreateView.as_view(), name="list"),
    path("mine/", MyTopicsView.as_view(), name="mine"),
    path("flagged/", FlaggedTopicsView.as_view(), name="flagged"),
    path("<int:topic_id>/", TopicDetailView.as_view(), name="detail"),
    path("<int:topic_id>/publish/", TopicPublishView.as_view(), name="publish"),
    path("<int:topic_id>/archive/", TopicArchiveView.as_view(), name="archive"),
    path("<int:topic_id>/flag/", TopicFlagView.as_view(), name="flag"),
    path("<int:topic_id>/clear-flags/", TopicClearFlagsView.as_view(), name="clear-flags"),
]
