from rest_framework import status
from rest_framework.views import APIView

from accounts.permissions import IsActiveUser, IsSupervisor
from activity.services import ActivityRecorder
from fypportal.api import success

from . import services as feedback_service
from .serializers import FeedbackSerializer


class SubmissionFeedbackView(APIView):
    """Read feedback on a submission (any role) or add some (supervisors)."""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsSupervisor()]
        return [IsActiveUser()]

    def get(self, request, submission_id: int, *args, **kwargs):
        feedback = feedback_service.feedback_for(request.user, submission_id)
        data = FeedbackSerializer(feedback, many=True).data
        return success({"feedback": data, "count": len(data)})

    def post(self, request, submission_id: int, *args, **kwargs):
        serializer = FeedbackSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        feedback = feedback_service.add_feedback(
            request.user,
            submission_id,
            serializer.validated_data,
            recorder=ActivityRecorder.for_request(request),
        )
        return success(FeedbackSerializer(feedback).data, status.HTTP_201_CREATED)


class SubmissionFeedbackStatsView(APIView):
    permission_classes = [IsActiveUser]

    def get(self, request, submission_id: int, *args, **kwargs):
        return success(feedback_service.feedback_stats(request.user, submission_id))


class FeedbackDetailView(APIView):
    permission_classes = [IsSupervisor]

    def patch(self, request, feedback_id: int, *args, **kwargs):
        serializer = FeedbackSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        feedback = feedback_service.update_feedback(
            request.user,
            feedback_id,
            serializer.validated_data,
            recorder=ActivityRecorder.for_request(request),
        )
        return success(FeedbackSerializer(feedback).data)

    def delete(self, request, feedback_id: int, *args, **kwargs):
        feedback_service.delete_feedback(
            request.user, feedback_id, recorder=ActivityRecorder.for_request(request)
        )
        return success({"message": "Feedback deleted"})
