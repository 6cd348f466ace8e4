from rest_framework import status
from rest_framework.views import APIView

from accounts.permissions import IsStudent, IsSupervisor
from activity.services import ActivityRecorder
from fypportal.api import paginated, success

from . import services as submission_service
from .serializers import (
    DeclareInputSerializer,
    SubmissionSerializer,
    SubmitInputSerializer,
    SupervisorFilterSerializer,
)


class MySubmissionsView(APIView):
    permission_classes = [IsStudent]

    def get(self, request, *args, **kwargs):
        submissions = submission_service.student_submissions(request.user)
        return success(SubmissionSerializer(submissions, many=True).data)


class PhaseSubmissionView(APIView):
    """Read or submit the document for one phase."""

    permission_classes = [IsStudent]

    def get(self, request, phase: str, *args, **kwargs):
        submission = submission_service.get_student_submission(request.user, phase)
        return success(SubmissionSerializer(submission).data)

    def post(self, request, phase: str, *args, **kwargs):
        serializer = SubmitInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = submission_service.submit_document(
            request.user,
            phase,
            serializer.validated_data["document_url"],
            recorder=ActivityRecorder.for_request(request),
        )
        return success(SubmissionSerializer(submission).data, status.HTTP_201_CREATED)


class DeclareNotNeededView(APIView):
    permission_classes = [IsStudent]

    def post(self, request, phase: str, *args, **kwargs):
        serializer = DeclareInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = submission_service.declare_not_needed(
            request.user,
            phase,
            serializer.validated_data["reason"],
            recorder=ActivityRecorder.for_request(request),
        )
        return success(SubmissionSerializer(submission).data)


class SupervisorSubmissionsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, *args, **kwargs):
        params = SupervisorFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        submissions = submission_service.supervisor_submissions(
            request.user,
            phase=params.validated_data.get("phase"),
            status=params.validated_data.get("status"),
        )
        return paginated(request, submissions, SubmissionSerializer, default_limit=50)


class SupervisorSubmissionStatsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, *args, **kwargs):
        return success(submission_service.supervisor_submission_stats(request.user))
