from rest_framework import status
from rest_framework.views import APIView

from accounts.permissions import IsActiveUser, IsStudent, IsSupervisor
from activity.services import ActivityRecorder
from fypportal.api import paginated, success

from . import services as application_service
from .serializers import (
    ApplicationSerializer,
    ApplyInputSerializer,
    AssignmentSummarySerializer,
    DecisionInputSerializer,
    StatusFilterSerializer,
)
from .workflow import ApplicationWorkflow


def _workflow(request) -> ApplicationWorkflow:
    return ApplicationWorkflow(recorder=ActivityRecorder.for_request(request))


def _status_filter(request) -> str | None:
    params = StatusFilterSerializer(data=request.query_params)
    params.is_valid(raise_exception=True)
    return params.validated_data.get("status")


class ApplyView(APIView):
    permission_classes = [IsStudent]

    def post(self, request, *args, **kwargs):
        serializer = ApplyInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = _workflow(request).apply(
            request.user,
            serializer.validated_data["topic_id"],
            serializer.validated_data["preference_rank"],
        )
        return success(ApplicationSerializer(application).data, status.HTTP_201_CREATED)


class MyApplicationsView(APIView):
    permission_classes = [IsStudent]

    def get(self, request, *args, **kwargs):
        applications = application_service.student_applications(
            request.user, status=_status_filter(request)
        )
        return paginated(request, applications, ApplicationSerializer)


class SupervisorApplicationsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, *args, **kwargs):
        applications = application_service.supervisor_applications(
            request.user, status=_status_filter(request)
        )
        return paginated(request, applications, ApplicationSerializer)


class ApplicationDetailView(APIView):
    def get_permissions(self):
        if self.request.method == "DELETE":
            return [IsStudent()]
        return [IsActiveUser()]

    def get(self, request, application_id: int, *args, **kwargs):
        application = application_service.get_application_for(request.user, application_id)
        return success(ApplicationSerializer(application).data)

    def delete(self, request, application_id: int, *args, **kwargs):
        _workflow(request).withdraw(request.user, application_id)
        return success({"message": "Application withdrawn successfully"})


class ApproveApplicationView(APIView):
    permission_classes = [IsSupervisor]

    def post(self, request, application_id: int, *args, **kwargs):
        serializer = DecisionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = _workflow(request).approve(
            request.user, application_id, serializer.validated_data["supervisor_notes"]
        )
        return success(
            {
                "application": ApplicationSerializer(result.application).data,
                "assignment": AssignmentSummarySerializer(result.assignment).data,
                "auto_rejected": result.auto_rejected,
            }
        )


class RejectApplicationView(APIView):
    permission_classes = [IsSupervisor]

    def post(self, request, application_id: int, *args, **kwargs):
        serializer = DecisionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = _workflow(request).reject(
            request.user, application_id, serializer.validated_data["supervisor_notes"]
        )
        return success(ApplicationSerializer(application).data)


class ApplicationStatsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, *args, **kwargs):
        return success(application_service.application_stats(request.user))


class TopicApplicationStatsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, topic_id: int, *args, **kwargs):
        return success(application_service.topic_application_stats(request.user, topic_id))
