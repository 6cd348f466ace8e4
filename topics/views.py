from rest_framework import status
from rest_framework.views import APIView

from accounts.permissions import IsActiveUser, IsAdminRole, IsSupervisor, IsSupervisorOrAdmin
from activity.services import ActivityRecorder
from fypportal.api import paginated, success

from . import services as topic_service
from .serializers import (
    FlaggedTopicSerializer,
    ModerationReasonSerializer,
    TopicFilterSerializer,
    TopicFlagSerializer,
    TopicSerializer,
)


class TopicListCreateView(APIView):
    """Browse topics (any role) or create a draft (supervisors)."""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsSupervisor()]
        return [IsActiveUser()]

    def get(self, request, *args, **kwargs):
        params = TopicFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data
        topics = topic_service.visible_topics(
            request.user,
            status=data.get("status"),
            concentration=data.get("concentration"),
            academic_year=data.get("academic_year"),
            supervisor_id=data.get("supervisor"),
            search=data.get("search"),
        )
        return paginated(request, topics, TopicSerializer, default_limit=20)

    def post(self, request, *args, **kwargs):
        serializer = TopicSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        topic = topic_service.create_topic(
            request.user,
            serializer.validated_data,
            recorder=ActivityRecorder.for_request(request),
        )
        return success(TopicSerializer(topic).data, status.HTTP_201_CREATED)


class MyTopicsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, *args, **kwargs):
        topics = topic_service.supervisor_topics(
            request.user, status=request.query_params.get("status") or None
        )
        return paginated(request, topics, TopicSerializer, default_limit=50)


class TopicDetailView(APIView):
    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsSupervisor()]
        if self.request.method == "DELETE":
            return [IsAdminRole()]
        return [IsActiveUser()]

    def get(self, request, topic_id: int, *args, **kwargs):
        topic = topic_service.get_visible_topic(request.user, topic_id)
        return success(TopicSerializer(topic).data)

    def patch(self, request, topic_id: int, *args, **kwargs):
        serializer = TopicSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        topic = topic_service.update_topic(
            request.user,
            topic_id,
            serializer.validated_data,
            recorder=ActivityRecorder.for_request(request),
        )
        return success(TopicSerializer(topic).data)

    def delete(self, request, topic_id: int, *args, **kwargs):
        topic_service.delete_topic(
            request.user, topic_id, recorder=ActivityRecorder.for_request(request)
        )
        return success({"message": "Topic deleted successfully"})


class TopicPublishView(APIView):
    permission_classes = [IsSupervisor]

    def post(self, request, topic_id: int, *args, **kwargs):
        topic = topic_service.publish_topic(
            request.user, topic_id, recorder=ActivityRecorder.for_request(request)
        )
        return success(TopicSerializer(topic).data)


class TopicArchiveView(APIView):
    """Supervisors archive their own topics; admins may archive any topic."""

    permission_classes = [IsSupervisorOrAdmin]

    def post(self, request, topic_id: int, *args, **kwargs):
        params = ModerationReasonSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        topic = topic_service.archive_topic(
            request.user,
            topic_id,
            params.validated_data["reason"],
            recorder=ActivityRecorder.for_request(request),
        )
        return success(TopicSerializer(topic).data)


class FlaggedTopicsView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, *args, **kwargs):
        return paginated(
            request, topic_service.flagged_topics(), FlaggedTopicSerializer, default_limit=50
        )


class TopicFlagView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, topic_id: int, *args, **kwargs):
        params = ModerationReasonSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        flag = topic_service.flag_topic(
            request.user,
            topic_id,
            params.validated_data["reason"],
            recorder=ActivityRecorder.for_request(request),
        )
        return success(TopicFlagSerializer(flag).data, status.HTTP_201_CREATED)


class TopicClearFlagsView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, topic_id: int, *args, **kwargs):
        params = ModerationReasonSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        cleared = topic_service.clear_topic_flags(
            request.user,
            topic_id,
            params.validated_data["reason"],
            recorder=ActivityRecorder.for_request(request),
        )
        return success({"cleared": cleared})
