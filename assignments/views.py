from rest_framework.views import APIView

from accounts.permissions import IsActiveUser, IsAdminRole, IsStudent, IsSupervisor
from activity.services import ActivityRecorder
from fypportal.api import paginated, success

from . import services as assignment_service
from .serializers import AssignmentSerializer, ReassignInputSerializer, StatusFilterSerializer


class MyAssignmentView(APIView):
    permission_classes = [IsStudent]

    def get(self, request, *args, **kwargs):
        assignment = assignment_service.get_active_assignment(request.user)
        return success(AssignmentSerializer(assignment).data)


class SupervisorAssignmentsView(APIView):
    permission_classes = [IsSupervisor]

    def get(self, request, *args, **kwargs):
        params = StatusFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        assignments = assignment_service.supervisor_assignments(
            request.user, status=params.validated_data.get("status")
        )
        return paginated(request, assignments, AssignmentSerializer)


class AssignmentDetailView(APIView):
    permission_classes = [IsActiveUser]

    def get(self, request, assignment_id: int, *args, **kwargs):
        assignment = assignment_service.get_assignment_for(request.user, assignment_id)
        return success(AssignmentSerializer(assignment).data)


class CompleteAssignmentView(APIView):
    permission_classes = [IsSupervisor]

    def post(self, request, assignment_id: int, *args, **kwargs):
        assignment = assignment_service.complete_assignment(
            request.user, assignment_id, recorder=ActivityRecorder.for_request(request)
        )
        return success(AssignmentSerializer(assignment).data)


class ReassignView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, assignment_id: int, *args, **kwargs):
        serializer = ReassignInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        replacement = assignment_service.reassign(
            request.user,
            assignment_id,
            serializer.validated_data["topic_id"],
            recorder=ActivityRecorder.for_request(request),
        )
        return success(AssignmentSerializer(replacement).data)
