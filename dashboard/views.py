from rest_framework.views import APIView

from accounts.permissions import IsAdminRole
from fypportal.api import success

from . import services as dashboard_service


class AdminDashboardView(APIView):
    permission_classes = [IsAdminRole]


class SystemStatsView(AdminDashboardView):
    def get(self, request, *args, **kwargs):
        return success(dashboard_service.system_stats())


class ConcentrationStatsView(AdminDashboardView):
    def get(self, request, *args, **kwargs):
        return success(dashboard_service.concentration_stats())


class ApplicationStatsView(AdminDashboardView):
    def get(self, request, *args, **kwargs):
        return success(dashboard_service.application_stats())


class SubmissionDeadlineStatsView(AdminDashboardView):
    def get(self, request, *args, **kwargs):
        return success(dashboard_service.submission_deadline_stats())
